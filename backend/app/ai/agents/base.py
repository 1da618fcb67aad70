"""
Quiz Platform - Base Agent
Abstract base class for the AI agents.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum

from app.ai.core.llm import LLMClient
from app.ai.core.telemetry import get_tracer

logger = logging.getLogger(__name__)


class AgentState(Enum):
    """Agent execution states."""
    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class AgentContext:
    """Context passed to agent during execution."""
    session_id: str
    user_input: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentResult:
    """Result from agent execution."""
    success: bool
    output: Any
    state: AgentState
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


class BaseAgent(ABC):
    """
    Abstract base class for AI Agents.

    Each agent follows the Plan-Execute pattern:
    1. plan() - Determine what actions to take
    2. execute() - Perform the actions

    run() never raises; failures come back as an AgentResult with
    state ERROR so callers decide how to degrade.
    """

    name: str = "BaseAgent"
    description: str = "Base agent class"
    version: str = "1.0.0"

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        temperature: float = 0.7,
    ):
        self.llm = llm_client or LLMClient(temperature=temperature)

    @abstractmethod
    async def plan(self, context: AgentContext) -> Dict[str, Any]:
        """
        Planning phase: Determine what actions to take.

        Args:
            context: The agent context with the request input.

        Returns:
            A plan dictionary with actions to execute.
        """

    @abstractmethod
    async def execute(self, context: AgentContext, plan: Dict[str, Any]) -> AgentResult:
        """
        Execution phase: Perform the planned actions.

        Args:
            context: The agent context.
            plan: The plan from the planning phase.

        Returns:
            AgentResult with the execution outcome.
        """

    async def run(
        self,
        user_input: str,
        session_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AgentResult:
        """
        Run the agent with the given input.

        This is the main entry point for agent execution.
        It orchestrates the plan-execute cycle.
        """
        tracer = get_tracer()

        with tracer.start_as_current_span(f"{self.name}.run") as span:
            span.set_attribute("agent.name", self.name)
            span.set_attribute("agent.version", self.version)

            try:
                session_id = session_id or str(uuid.uuid4())
                span.set_attribute("session.id", session_id)

                context = AgentContext(
                    session_id=session_id,
                    user_input=user_input,
                    metadata=metadata or {},
                )

                with tracer.start_as_current_span(f"{self.name}.plan"):
                    plan = await self.plan(context)

                with tracer.start_as_current_span(f"{self.name}.execute"):
                    result = await self.execute(context, plan)

                span.add_event("execution_completed", {"success": result.success})
                return result

            except Exception as e:
                span.record_exception(e)
                logger.warning("%s failed: %s", self.name, e)

                return AgentResult(
                    success=False,
                    output=None,
                    state=AgentState.ERROR,
                    error=str(e),
                )

    def __repr__(self) -> str:
        return f"<{self.name} v{self.version}>"
