"""
Quiz Platform - AI Module Initialization
Agents for post-attempt feedback and document-to-quiz import.
"""
from app.ai.agents import (
    BaseAgent,
    AgentContext,
    AgentResult,
    AgentState,
    ExaminerAgent,
    FeedbackAgent,
    get_examiner_agent,
    get_feedback_agent,
)
from app.ai.core.llm import LLMClient, LLMResponse
from app.ai.core.telemetry import init_telemetry, get_tracer, agent_span

__all__ = [
    "BaseAgent",
    "AgentContext",
    "AgentResult",
    "AgentState",
    "ExaminerAgent",
    "FeedbackAgent",
    "get_examiner_agent",
    "get_feedback_agent",
    "LLMClient",
    "LLMResponse",
    "init_telemetry",
    "get_tracer",
    "agent_span",
]
