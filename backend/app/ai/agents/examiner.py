"""
Quiz Platform - Examiner Agent
Generates multiple-choice question candidates from document text.
"""
import logging
from typing import Any, Dict, List, Optional

from app.ai.agents.base import AgentContext, AgentResult, AgentState, BaseAgent
from app.ai.core.guardrails import sanitize_text
from app.ai.core.llm import LLMClient, extract_json
from app.ai.core.telemetry import agent_span
from app.core.config import settings
from app.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")


def normalize_candidate(raw: Any) -> Dict[str, Any]:
    """
    Shape one model-produced question into a candidate dict.

    Nothing is rejected here; accept_candidates in the question bank
    decides what is kept.
    """
    if not isinstance(raw, dict):
        raw = {}

    try:
        correct_index = int(raw.get("correct_index", raw.get("correctIndex", -1)))
    except (TypeError, ValueError):
        correct_index = -1

    # Blank choices are dropped so they can't count toward the minimum;
    # the correct index follows its choice, or goes out of range with it.
    choices = []
    kept_index = -1
    raw_choices = raw.get("choices")
    for position, c in enumerate(raw_choices if isinstance(raw_choices, list) else []):
        if isinstance(c, dict):
            choice = {"text": sanitize_text(c.get("text")), "meta": sanitize_text(c.get("meta"))}
        else:
            choice = {"text": sanitize_text(c), "meta": ""}
        if not choice["text"]:
            continue
        if position == correct_index:
            kept_index = len(choices)
        choices.append(choice)
    correct_index = kept_index

    try:
        marks = max(0, int(raw.get("marks") or 1))
    except (TypeError, ValueError):
        marks = 1

    difficulty = raw.get("difficulty")
    tags = raw.get("topic_tags") or []
    return {
        "stem": sanitize_text(raw.get("stem")),
        "choices": choices,
        "correct_index": correct_index,
        "marks": marks,
        "difficulty": difficulty if difficulty in DIFFICULTIES else "medium",
        "topic_tags": [t for t in (sanitize_text(t, 100) for t in tags if isinstance(t, str)) if t][:5]
        if isinstance(tags, list) else [],
        "explanation": sanitize_text(raw.get("explanation")),
    }


class ExaminerAgent(BaseAgent):
    """
    The Examiner Agent

    Reads source text and drafts multiple-choice questions for a quiz.

    Uses the Plan-Execute pattern:
    - Plan: trim the text and fix the number of questions
    - Execute: ask the model for a JSON array and normalize it
    """

    name = "ExaminerAgent"
    description = "Generates multiple-choice questions from documents"
    version = "1.0.0"

    SYSTEM_PROMPT = """You are an exam-authoring assistant. Given the text delimited by triple backticks,
extract clear multiple-choice questions with 4 choices each (unless fewer are warranted).
Output only a valid JSON array of objects:
[{"stem": "", "choices": ["", "", "", ""], "correct_index": 0, "marks": 1, "difficulty": "easy|medium|hard", "topic_tags": [""], "explanation": ""}]
Use neutral language, avoid opinionated content and never include personal data."""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        super().__init__(llm_client=llm_client, temperature=0.0)

    async def plan(self, context: AgentContext) -> Dict[str, Any]:
        requested = context.metadata.get("max_questions", settings.IMPORT_MAX_QUESTIONS)
        return {
            "text": context.user_input[:settings.IMPORT_MAX_TEXT_CHARS],
            "max_questions": max(1, min(int(requested), settings.IMPORT_MAX_QUESTIONS)),
        }

    async def execute(self, context: AgentContext, plan: Dict[str, Any]) -> AgentResult:
        prompt = f"Text:\n```{plan['text']}```\n\nGenerate {plan['max_questions']} questions."
        parsed = await self.llm.generate_json(
            prompt=prompt,
            system_prompt=self.SYSTEM_PROMPT,
            agent_name=self.name,
        )
        if isinstance(parsed, dict):
            parsed = parsed.get("questions", [parsed])
        if not isinstance(parsed, list):
            raise ValueError("Expected a JSON array of questions")

        candidates = [normalize_candidate(item) for item in parsed[:plan["max_questions"]]]
        return AgentResult(
            success=True,
            output=candidates,
            state=AgentState.COMPLETED,
            metadata={"returned": len(parsed)},
        )

    async def generate_mcqs(self, text: str, max_questions: int = None) -> List[Dict[str, Any]]:
        """
        Draft question candidates from text.

        Raises:
            UpstreamError: no model configured, or generation failed.
        """
        if not self.llm.is_configured:
            raise UpstreamError(
                f"AI question generation is not configured; set the API key for provider '{self.llm.provider}'",
                code="AI_NOT_CONFIGURED",
            )

        with agent_span("generate_mcqs", self.name, {"text.length": len(text)}) as span:
            result = await self.run(
                user_input=text,
                metadata={"max_questions": max_questions or settings.IMPORT_MAX_QUESTIONS},
            )
            if not result.success:
                raise UpstreamError(f"Failed to generate questions: {result.error}")
            span.set_attribute("candidates.count", len(result.output))
            return result.output


_examiner_agent: Optional[ExaminerAgent] = None


def get_examiner_agent() -> ExaminerAgent:
    """FastAPI dependency; overridden in tests."""
    global _examiner_agent
    if _examiner_agent is None:
        _examiner_agent = ExaminerAgent()
    return _examiner_agent
