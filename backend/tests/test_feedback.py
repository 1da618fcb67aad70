"""
Quiz Platform - Feedback Agent Tests
"""
import json
import uuid
from types import SimpleNamespace

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from app.ai.agents.feedback import (
    FALLBACK_FEEDBACK,
    MAX_WEAK_TOPICS,
    UNPARSEABLE_FEEDBACK,
    FeedbackAgent,
    normalize_feedback,
)
from app.ai.core.guardrails import sanitize_text
from app.ai.core import telemetry
from app.ai.core.llm import extract_json


def graded_attempt(results: list[tuple[str, bool]]):
    return SimpleNamespace(
        id=uuid.uuid4(),
        score=sum(1 for _, ok in results if ok),
        max_score=len(results),
        answer_results=[{"questionId": qid, "isCorrect": ok} for qid, ok in results],
    )


def quiz_questions(*topics: str):
    return [
        SimpleNamespace(id=uuid.uuid4(), stem=f"About {topic}?", primary_topic=topic)
        for topic in topics
    ]


class TestSanitize:
    def test_strips_markup_and_collapses_whitespace(self):
        assert sanitize_text("<script>x</script>  **Great**\n\n_job_ #1") == "x Great job 1"

    def test_non_strings_become_empty(self):
        assert sanitize_text(None) == ""
        assert sanitize_text(42) == ""

    def test_caps_length(self):
        assert len(sanitize_text("a" * 5000)) == 1000
        assert sanitize_text("abcdef", max_length=3) == "abc"


class TestExtractJson:
    def test_fenced_block(self):
        assert extract_json('```json\n{"summary": "ok"}\n```') == {"summary": "ok"}

    def test_json_embedded_in_prose(self):
        assert extract_json('Here you go: {"summary": "ok"} Thanks!') == {"summary": "ok"}

    def test_no_json(self):
        with pytest.raises(ValueError):
            extract_json("I could not do that.")


class TestNormalizeFeedback:
    def test_defaults_for_missing_fields(self):
        assert normalize_feedback({}) == {
            "summary": "Keep practicing!",
            "weak_topics": [],
            "improvement_tips": "Focus on weak areas.",
            "recommended_actions": "Continue studying.",
        }

    def test_weak_topics_are_capped(self):
        raw = {"weak_topics": [{"topic": f"t{i}", "advice": "practice"} for i in range(9)]}
        assert len(normalize_feedback(raw)["weak_topics"]) == MAX_WEAK_TOPICS

    def test_plain_string_topics_are_accepted(self):
        result = normalize_feedback({"weak_topics": ["ratios", "", {"topic": "<i>angles</i>"}]})
        assert result["weak_topics"] == [
            {"topic": "ratios", "advice": ""},
            {"topic": "angles", "advice": ""},
        ]

    def test_non_object_reply(self):
        assert normalize_feedback(["not", "an", "object"]) == UNPARSEABLE_FEEDBACK


@pytest.mark.asyncio
class TestFeedbackAgent:
    async def test_unconfigured_model_uses_fallback(self, stub_llm):
        llm = stub_llm(configured=False)
        agent = FeedbackAgent(llm_client=llm)
        questions = quiz_questions("algebra")

        feedback = await agent.generate_feedback(graded_attempt([(str(questions[0].id), False)]), questions)

        assert feedback == FALLBACK_FEEDBACK
        assert llm.calls == 0

    async def test_structured_reply(self, stub_llm):
        reply = json.dumps({
            "summary": "Strong on geometry.",
            "weak_topics": [{"topic": "algebra", "advice": "Practice factoring"}],
            "improvement_tips": "Slow down on word problems.",
            "recommended_actions": "Retake the algebra set.",
        })
        agent = FeedbackAgent(llm_client=stub_llm(reply=reply))
        questions = quiz_questions("geometry", "algebra")
        attempt = graded_attempt([(str(questions[0].id), True), (str(questions[1].id), False)])

        feedback = await agent.generate_feedback(attempt, questions)

        assert feedback["summary"] == "Strong on geometry."
        assert feedback["weak_topics"] == [{"topic": "algebra", "advice": "Practice factoring"}]
        assert feedback["recommended_actions"] == "Retake the algebra set."

    async def test_opaque_text_reply(self, stub_llm):
        agent = FeedbackAgent(llm_client=stub_llm(reply="Nice effort, keep going."))

        feedback = await agent.generate_feedback(graded_attempt([]), [])

        assert feedback == UNPARSEABLE_FEEDBACK

    async def test_provider_error(self, stub_llm):
        agent = FeedbackAgent(llm_client=stub_llm(error=ConnectionError("refused")))

        feedback = await agent.generate_feedback(graded_attempt([]), [])

        assert feedback == FALLBACK_FEEDBACK

    async def test_timeout(self, stub_llm):
        agent = FeedbackAgent(llm_client=stub_llm(reply='{"summary": "too late"}', delay=1.0), timeout=0.01)

        feedback = await agent.generate_feedback(graded_attempt([]), [])

        assert feedback == FALLBACK_FEEDBACK

    async def test_empty_object_reply_gets_defaults(self, stub_llm):
        agent = FeedbackAgent(llm_client=stub_llm())
        questions = quiz_questions("a", "b", "c")
        attempt = graded_attempt([
            (str(questions[0].id), True),
            (str(questions[1].id), False),
            (str(uuid.uuid4()), False),
        ])

        result = await agent.run(
            user_input="feedback",
            metadata={
                "answer_details": [
                    {"question": "q", "correct": r["isCorrect"], "topic": "t"}
                    for r in attempt.answer_results
                ],
                "score": attempt.score,
                "max_score": attempt.max_score,
            },
        )

        assert result.success
        assert result.output == normalize_feedback({})


@pytest.fixture
def recorded_spans(monkeypatch):
    """Route agent spans into an in-memory exporter."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(telemetry, "get_tracer", lambda: provider.get_tracer("tests"))
    return exporter


@pytest.mark.asyncio
async def test_feedback_is_traced(stub_llm, recorded_spans):
    agent = FeedbackAgent(llm_client=stub_llm(reply='{"summary": "late"}', delay=1.0), timeout=0.01)
    attempt = graded_attempt([])

    await agent.generate_feedback(attempt, [])

    spans = {s.name: s for s in recorded_spans.get_finished_spans()}
    assert spans["generate_feedback"].attributes["agent.name"] == "FeedbackAgent"
    assert spans["generate_feedback"].attributes["attempt.id"] == str(attempt.id)
    assert spans["generate_feedback"].attributes["feedback.fallback"] == "timeout"


def test_shared_agent_keeps_no_run_state(stub_llm):
    agent = FeedbackAgent(llm_client=stub_llm())

    assert not hasattr(agent, "_state")
    assert repr(agent) == "<FeedbackAgent v1.1.0>"
