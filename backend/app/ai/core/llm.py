"""
Quiz Platform - Unified LLM Client
Centralized LLM access with telemetry for the feedback and examiner agents.
"""
import json
import re
from typing import Optional, Any
from dataclasses import dataclass

from langchain_core.messages import HumanMessage, SystemMessage

from app.core.config import settings
from app.ai.core.telemetry import get_tracer


JSON_BLOCK_PATTERN = re.compile(r"(\{.*\}|\[.*\])", re.DOTALL)


@dataclass
class LLMResponse:
    """Standardized response from LLM client."""
    content: str
    model: str
    tokens_prompt: int = 0
    tokens_completion: int = 0
    tokens_total: int = 0
    raw_response: Any = None


def extract_json(content: str) -> Any:
    """
    Parse JSON out of a model reply.

    Strips markdown code fences; if the text still is not valid JSON, the
    outermost object or array found in it is tried. Raises ValueError when
    nothing parses.
    """
    content = content.strip()

    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    content = content.strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        match = JSON_BLOCK_PATTERN.search(content)
        if not match:
            raise ValueError("No JSON found in model response")
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed JSON in model response: {e}") from e


class LLMClient:
    """
    Unified LLM Client for all AI Agents.

    Features:
    - Multi-provider support (OpenAI, Anthropic)
    - Built-in telemetry (OpenTelemetry)
    - Token usage tracking
    """

    def __init__(
        self,
        provider: str = None,
        model: str = None,
        temperature: float = 0.7,
        timeout: int = None,
    ):
        """
        Initialize the LLM client.

        Args:
            provider: LLM provider ('openai' or 'anthropic'). Defaults to settings.
            model: Model name. Defaults to settings.
            temperature: Sampling temperature.
            timeout: Request timeout in seconds.
        """
        self.provider = provider or settings.LLM_PROVIDER
        self.model = model or (
            settings.OPENAI_MODEL if self.provider == "openai"
            else settings.ANTHROPIC_MODEL
        )
        self.temperature = temperature
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS

        self._llm = None

    @property
    def api_key(self) -> str:
        return settings.OPENAI_API_KEY if self.provider == "openai" else settings.ANTHROPIC_API_KEY

    @property
    def is_configured(self) -> bool:
        """True when credentials for the selected provider are present."""
        return bool(self.api_key)

    @property
    def llm(self):
        """Lazy-load the LLM instance."""
        if self._llm is None:
            if self.provider == "openai":
                from langchain_openai import ChatOpenAI
                self._llm = ChatOpenAI(
                    model=self.model,
                    api_key=self.api_key,
                    temperature=self.temperature,
                    timeout=self.timeout,
                )
            else:
                from langchain_anthropic import ChatAnthropic
                self._llm = ChatAnthropic(
                    model=self.model,
                    api_key=self.api_key,
                    temperature=self.temperature,
                    timeout=self.timeout,
                )
        return self._llm

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        agent_name: str = "LLMClient",
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: The user prompt.
            system_prompt: Optional system prompt.
            agent_name: Name of the calling agent (for telemetry).

        Returns:
            LLMResponse with content and metadata.
        """
        tracer = get_tracer()

        with tracer.start_as_current_span("llm.generate") as span:
            span.set_attribute("llm.model", self.model)
            span.set_attribute("llm.provider", self.provider)
            span.set_attribute("agent.name", agent_name)

            messages = []
            if system_prompt:
                messages.append(SystemMessage(content=system_prompt))
            messages.append(HumanMessage(content=prompt))

            span.set_attribute("llm.prompt_length", len(prompt))

            response = await self.llm.ainvoke(messages)
            content = response.content
            if not isinstance(content, str):
                # Anthropic may return a list of content blocks
                content = "".join(
                    block.get("text", "") if isinstance(block, dict) else str(block)
                    for block in content
                )

            tokens_prompt = 0
            tokens_completion = 0
            usage = getattr(response, "usage_metadata", None) or {}
            if usage:
                tokens_prompt = usage.get("input_tokens", 0)
                tokens_completion = usage.get("output_tokens", 0)

            tokens_total = tokens_prompt + tokens_completion
            span.set_attribute("llm.tokens.prompt", tokens_prompt)
            span.set_attribute("llm.tokens.completion", tokens_completion)
            span.set_attribute("llm.response_length", len(content))

            return LLMResponse(
                content=content,
                model=self.model,
                tokens_prompt=tokens_prompt,
                tokens_completion=tokens_completion,
                tokens_total=tokens_total,
                raw_response=response,
            )

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        agent_name: str = "LLMClient",
    ) -> Any:
        """
        Generate a JSON response from the LLM.
        Parses the response and returns a dict or list.
        """
        response = await self.generate(
            prompt=prompt,
            system_prompt=system_prompt,
            agent_name=agent_name,
        )
        return extract_json(response.content)
