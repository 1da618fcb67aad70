"""
Quiz Platform - Feedback Agent
Post-attempt feedback: strengths, weak topics and next steps.
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from app.ai.agents.base import AgentContext, AgentResult, AgentState, BaseAgent
from app.ai.core.guardrails import sanitize_text
from app.ai.core.llm import LLMClient, extract_json
from app.ai.core.telemetry import agent_span
from app.core.config import settings

logger = logging.getLogger(__name__)

MAX_WEAK_TOPICS = 5

# Stored when no model is configured, the call fails or it times out
FALLBACK_FEEDBACK = {
    "summary": "Your quiz attempt has been completed. Review your answers to improve your performance.",
    "weak_topics": [],
    "improvement_tips": "Focus on areas where you lost points. Practice more questions on those topics.",
    "recommended_actions": "Continue studying and attempt more quizzes.",
}

# Stored when the model answered but the reply held no usable JSON
UNPARSEABLE_FEEDBACK = {
    "summary": "Feedback generation completed.",
    "weak_topics": [],
    "improvement_tips": "Review your answers and practice more.",
    "recommended_actions": "Review your answers and practice more.",
}


def fallback_feedback() -> Dict[str, Any]:
    return {**FALLBACK_FEEDBACK, "weak_topics": []}


def normalize_feedback(raw: Any) -> Dict[str, Any]:
    """Coerce a parsed model reply into the stored payload shape, sanitizing every text field."""
    if not isinstance(raw, dict):
        return {**UNPARSEABLE_FEEDBACK, "weak_topics": []}

    weak_topics: List[Dict[str, str]] = []
    for item in raw.get("weak_topics") or []:
        if isinstance(item, dict):
            topic = sanitize_text(item.get("topic"))
            advice = sanitize_text(item.get("advice"))
        else:
            topic, advice = sanitize_text(item), ""
        if topic:
            weak_topics.append({"topic": topic, "advice": advice})
        if len(weak_topics) >= MAX_WEAK_TOPICS:
            break

    recommended = sanitize_text(raw.get("recommended_actions"))
    return {
        "summary": sanitize_text(raw.get("summary")) or "Keep practicing!",
        "weak_topics": weak_topics,
        "improvement_tips": (
            sanitize_text(raw.get("improvement_tips")) or recommended or "Focus on weak areas."
        ),
        "recommended_actions": recommended or "Continue studying.",
    }


class FeedbackAgent(BaseAgent):
    """
    Turns a graded attempt into short, actionable feedback.

    generate_feedback() always returns a payload: the model's answer when
    it is available and parseable, a fixed fallback otherwise.
    """

    name = "FeedbackAgent"
    description = "Generates post-attempt feedback for students"
    version = "1.1.0"

    SYSTEM_PROMPT = """You are an AI tutor. Given the student's attempt data and answer correctness
per question, produce a short summary of strengths, the weak areas with actionable tips,
and recommended study actions. Respond with a single JSON object and nothing else."""

    FEEDBACK_PROMPT = """Attempt Summary:
- Total Questions: {total}
- Correct: {correct}
- Incorrect: {incorrect}
- Score: {score}/{max_score}

Answer Details:
{answer_details}

Return JSON with exactly these keys:
{{"summary": "", "weak_topics": [{{"topic": "", "advice": ""}}], "improvement_tips": "", "recommended_actions": ""}}
List at most {max_topics} weak topics."""

    def __init__(self, llm_client: Optional[LLMClient] = None, timeout: Optional[float] = None):
        super().__init__(llm_client=llm_client, temperature=0.0)
        self.timeout = timeout if timeout is not None else settings.FEEDBACK_TIMEOUT_SECONDS

    async def plan(self, context: AgentContext) -> Dict[str, Any]:
        details = context.metadata.get("answer_details", [])
        correct = sum(1 for d in details if d["correct"])
        return {
            "total": len(details),
            "correct": correct,
            "incorrect": len(details) - correct,
            "score": context.metadata.get("score", 0),
            "max_score": context.metadata.get("max_score", 0),
            "answer_details": details,
        }

    async def execute(self, context: AgentContext, plan: Dict[str, Any]) -> AgentResult:
        if not self.llm.is_configured:
            return AgentResult(
                success=True,
                output=fallback_feedback(),
                state=AgentState.COMPLETED,
                metadata={"fallback": "unconfigured"},
            )

        prompt = self.FEEDBACK_PROMPT.format(
            total=plan["total"],
            correct=plan["correct"],
            incorrect=plan["incorrect"],
            score=plan["score"],
            max_score=plan["max_score"],
            answer_details=json.dumps(plan["answer_details"], indent=2)[:6000],
            max_topics=MAX_WEAK_TOPICS,
        )
        response = await self.llm.generate(
            prompt=prompt,
            system_prompt=self.SYSTEM_PROMPT,
            agent_name=self.name,
        )

        try:
            parsed = extract_json(response.content)
        except ValueError:
            logger.warning("Unparseable feedback reply for session %s", context.session_id)
            parsed = None

        return AgentResult(
            success=True,
            output=normalize_feedback(parsed),
            state=AgentState.COMPLETED,
        )

    async def generate_feedback(self, attempt, questions) -> Dict[str, Any]:
        """
        Build feedback for a graded attempt.

        Args:
            attempt: the submitted Attempt (answer_results, score, max_score).
            questions: the quiz's Question rows.
        """
        by_id = {str(q.id): q for q in questions}
        answer_details = []
        for result in attempt.answer_results or []:
            question = by_id.get(result.get("questionId"))
            answer_details.append({
                "question": question.stem if question else "Unknown",
                "correct": bool(result.get("isCorrect")),
                "topic": question.primary_topic if question else "General",
            })

        with agent_span("generate_feedback", self.name, {"attempt.id": attempt.id}) as span:
            try:
                result = await asyncio.wait_for(
                    self.run(
                        user_input=f"feedback:{attempt.id}",
                        session_id=str(attempt.id),
                        metadata={
                            "answer_details": answer_details,
                            "score": attempt.score,
                            "max_score": attempt.max_score,
                        },
                    ),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("Feedback for attempt %s timed out after %ss", attempt.id, self.timeout)
                span.set_attribute("feedback.fallback", "timeout")
                return fallback_feedback()

            if not result.success or not isinstance(result.output, dict):
                span.set_attribute("feedback.fallback", "error")
                return fallback_feedback()
            return result.output


_feedback_agent: Optional[FeedbackAgent] = None


def get_feedback_agent() -> FeedbackAgent:
    """FastAPI dependency; overridden in tests."""
    global _feedback_agent
    if _feedback_agent is None:
        _feedback_agent = FeedbackAgent()
    return _feedback_agent
