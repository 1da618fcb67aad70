# AI Core Module - LLM access, tracing and output sanitizing

from app.ai.core.llm import LLMClient, LLMResponse, extract_json
from app.ai.core.telemetry import init_telemetry, get_tracer, agent_span
from app.ai.core.guardrails import sanitize_text

__all__ = [
    # LLM
    "LLMClient", "LLMResponse", "extract_json",
    # Telemetry
    "init_telemetry", "get_tracer", "agent_span",
    # Guardrails
    "sanitize_text",
]
