"""
Quiz Platform - Grading
Pure scoring of a submission against a quiz's questions
"""
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable

from app.core.exceptions import InvalidInputError


@dataclass
class GradeResult:
    score: int
    answers: list[dict[str, Any]] = field(default_factory=list)
    answer_results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.answer_results if r["isCorrect"])


def _canonical_id(value: Any) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return str(value)


def grade_answers(answers: Iterable[dict[str, Any]], questions: Iterable) -> GradeResult:
    """
    Grade answers against the quiz's questions.

    An answer is correct when its question belongs to the quiz and
    ``selectedIndex`` equals the question's ``correct_index``. Answers to
    unknown or malformed question ids are kept and marked incorrect. Two
    answers for the same question id are rejected.

    Args:
        answers: dicts with questionId, selectedIndex and timeTakenSeconds.
        questions: Question rows of the quiz.
    """
    by_id = {str(q.id): q for q in questions}

    seen: set[str] = set()
    result = GradeResult(score=0)
    for answer in answers:
        question_id = _canonical_id(answer["questionId"])
        if question_id in seen:
            raise InvalidInputError(
                f"Duplicate answer for question {question_id}", code="DUPLICATE_ANSWER"
            )
        seen.add(question_id)

        selected = answer["selectedIndex"]
        question = by_id.get(question_id)
        is_correct = question is not None and selected == question.correct_index
        if is_correct:
            result.score += question.marks

        result.answers.append({
            "questionId": question_id,
            "selectedIndex": selected,
            "timeTakenSeconds": answer.get("timeTakenSeconds", 0),
        })
        result.answer_results.append({"questionId": question_id, "isCorrect": is_correct})

    return result
