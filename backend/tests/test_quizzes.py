"""
Quiz Platform - Quiz Catalog and Import Tests
"""
import json

import pytest
from pypdf.errors import PdfReadError

from app.ai.agents.examiner import ExaminerAgent, get_examiner_agent, normalize_candidate
from app.core.exceptions import InvalidInputError
from app.main import app
from app.models.user import UserRole
from app.services import document
from app.services.question_bank import accept_candidates

SOURCE_TEXT = (
    "Photosynthesis converts light energy into chemical energy. Chlorophyll absorbs mostly blue "
    "and red light. The light-dependent reactions take place in the thylakoid membranes, while "
    "the Calvin cycle runs in the stroma and fixes carbon dioxide into sugars."
)


def candidate(i: int, stem: str | None = None) -> dict:
    return {
        "stem": f"Generated question {i}?" if stem is None else stem,
        "choices": ["Stroma", "Thylakoid", "Nucleus", "Cell wall"],
        "correct_index": 1,
        "marks": 1,
        "difficulty": "medium",
        "topic_tags": ["photosynthesis"],
        "explanation": "Light reactions happen in the thylakoids.",
    }


def upload(name: str = "photosynthesis.txt", text: str = SOURCE_TEXT, content_type: str = "text/plain"):
    return {"file": (name, text.encode(), content_type)}


# ============================================================================
# Authoring
# ============================================================================

@pytest.mark.asyncio
async def test_create_quiz_sets_total_marks(client, teacher, create_quiz):
    quiz = await create_quiz(teacher[1], marks=(5, 3, 2), duration_minutes=15, pass_marks=6)

    assert quiz["settings"]["total_marks"] == 10
    assert quiz["settings"]["duration_minutes"] == 15
    assert quiz["settings"]["pass_marks"] == 6
    assert quiz["settings"]["attempts_count"] == 0
    assert quiz["settings"]["scheduledAt"] is not None
    assert quiz["creatorId"] == str(teacher[0].id)
    # Inline questions belong to the new quiz
    assert {q["quizId"] for q in quiz["questions"]} == {quiz["id"]}


@pytest.mark.asyncio
async def test_students_cannot_create_quizzes(client, student):
    response = await client.post("/api/v1/quizzes", json={"title": "Nope"}, headers=student[1])

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_quiz_with_unknown_question_id(client, teacher):
    response = await client.post(
        "/api/v1/quizzes",
        json={"title": "Ghost", "questionIds": ["00000000-0000-0000-0000-000000000001"]},
        headers=teacher[1],
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_question_set_recomputes_total(client, teacher, create_quiz):
    quiz = await create_quiz(teacher[1], marks=(5, 3))
    keep = quiz["questions"][1]["id"]

    response = await client.put(
        f"/api/v1/quizzes/{quiz['id']}",
        json={"questionIds": [keep], "title": "Renamed", "settings": {"allow_retake": True}},
        headers=teacher[1],
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Renamed"
    assert [q["id"] for q in data["questions"]] == [keep]
    assert data["settings"]["total_marks"] == 3
    assert data["settings"]["allow_retake"] is True


@pytest.mark.asyncio
async def test_only_creator_or_admin_can_update(client, make_user, teacher, admin, create_quiz):
    quiz = await create_quiz(teacher[1])
    _, other_headers = await make_user(UserRole.TEACHER)

    by_other = await client.put(f"/api/v1/quizzes/{quiz['id']}", json={"title": "Mine now"}, headers=other_headers)
    by_admin = await client.put(f"/api/v1/quizzes/{quiz['id']}", json={"title": "Audited"}, headers=admin[1])

    assert by_other.status_code == 403
    assert by_admin.status_code == 200


@pytest.mark.asyncio
async def test_publish(client, teacher, student, create_quiz):
    quiz = await create_quiz(teacher[1], is_published=False)
    assert quiz["settings"]["scheduledAt"] is None

    response = await client.post(f"/api/v1/quizzes/{quiz['id']}/publish", headers=teacher[1])

    assert response.status_code == 200
    settings = response.json()["data"]["settings"]
    assert settings["is_published"] is True
    assert settings["scheduledAt"] is not None

    started = await client.post("/api/v1/attempts/start", json={"quizId": quiz["id"]}, headers=student[1])
    assert started.status_code == 200


# ============================================================================
# Reads
# ============================================================================

@pytest.mark.asyncio
async def test_listing_is_scoped_by_role(client, make_user, teacher, student, admin, create_quiz):
    published = await create_quiz(teacher[1])
    draft = await create_quiz(teacher[1], is_published=False)
    other_teacher, other_headers = await make_user(UserRole.TEACHER)
    foreign_draft = await create_quiz(other_headers, is_published=False)

    as_student = (await client.get("/api/v1/quizzes", headers=student[1])).json()["data"]
    assert [q["id"] for q in as_student] == [published["id"]]
    assert all("correctIndex" not in q for q in as_student[0]["questions"])

    mine = (await client.get("/api/v1/quizzes", params={"mine": "true"}, headers=teacher[1])).json()["data"]
    assert {q["id"] for q in mine} == {published["id"], draft["id"]}

    as_admin = (await client.get("/api/v1/quizzes", headers=admin[1])).json()["data"]
    assert {q["id"] for q in as_admin} == {published["id"], draft["id"], foreign_draft["id"]}

    by_creator = (await client.get(
        "/api/v1/quizzes", params={"creatorId": str(other_teacher.id)}, headers=admin[1]
    )).json()["data"]
    assert [q["id"] for q in by_creator] == [foreign_draft["id"]]


@pytest.mark.asyncio
async def test_students_see_no_questions_of_a_draft(client, teacher, student, create_quiz):
    draft = await create_quiz(teacher[1], is_published=False)
    published = await create_quiz(teacher[1])

    draft_view = (await client.get(f"/api/v1/quizzes/{draft['id']}", headers=student[1])).json()["data"]
    published_view = (await client.get(f"/api/v1/quizzes/{published['id']}", headers=student[1])).json()["data"]

    assert draft_view["questions"] == []
    assert len(published_view["questions"]) == 2
    assert all("correctIndex" not in q for q in published_view["questions"])


@pytest.mark.asyncio
async def test_unknown_quiz(client, student):
    response = await client.get("/api/v1/quizzes/00000000-0000-0000-0000-000000000001", headers=student[1])

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Quiz not found", "code": "QUIZ_NOT_FOUND"}


# ============================================================================
# AI import
# ============================================================================

@pytest.mark.asyncio
async def test_import_keeps_only_valid_candidates(client, stub_llm, teacher):
    candidates = [candidate(i) for i in range(7)] + [candidate(i, stem="") for i in range(3)]
    app.dependency_overrides[get_examiner_agent] = lambda: ExaminerAgent(
        llm_client=stub_llm(reply=json.dumps(candidates))
    )

    response = await client.post("/api/v1/quizzes/import", files=upload(), headers=teacher[1])

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["accepted"] == 7
    assert data["rejected"] == 3
    quiz = data["quiz"]
    assert quiz["title"] == "photosynthesis"
    assert quiz["settings"]["is_published"] is False
    assert quiz["settings"]["total_marks"] == 7
    assert len(quiz["questions"]) == 7
    assert {q["source"] for q in quiz["questions"]} == {"ai"}
    assert "3 invalid candidates discarded" in data["message"]


@pytest.mark.asyncio
async def test_import_drops_out_of_range_answers(client, stub_llm, teacher):
    bad = {**candidate(1), "correct_index": 9}
    few_choices = {**candidate(2), "choices": ["Only"]}
    app.dependency_overrides[get_examiner_agent] = lambda: ExaminerAgent(
        llm_client=stub_llm(reply=json.dumps({"questions": [candidate(0), bad, few_choices]}))
    )

    response = await client.post("/api/v1/quizzes/import", files=upload(), headers=teacher[1])

    data = response.json()["data"]
    assert data["accepted"] == 1
    assert data["rejected"] == 2


@pytest.mark.asyncio
async def test_import_without_model_creates_empty_draft(client, teacher):
    response = await client.post("/api/v1/quizzes/import", files=upload(), headers=teacher[1])

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["accepted"] == 0
    assert data["quiz"]["questions"] == []
    assert data["quiz"]["settings"]["is_published"] is False
    assert data["message"].startswith("AI generation failed:")
    assert data["message"].endswith("You can add questions manually.")


@pytest.mark.asyncio
async def test_import_with_garbled_model_reply(client, stub_llm, teacher):
    app.dependency_overrides[get_examiner_agent] = lambda: ExaminerAgent(
        llm_client=stub_llm(reply="Sorry, I cannot help with that.")
    )

    response = await client.post("/api/v1/quizzes/import", files=upload(), headers=teacher[1])

    assert response.status_code == 201
    assert response.json()["data"]["message"].startswith("AI generation failed:")


@pytest.mark.asyncio
@pytest.mark.parametrize("name,text,code", [
    ("notes.docx", SOURCE_TEXT, "UNSUPPORTED_FILE"),
    ("notes.txt", "Too short.", "TOO_LITTLE_TEXT"),
])
async def test_import_rejects_bad_documents(client, teacher, name, text, code):
    response = await client.post("/api/v1/quizzes/import", files=upload(name, text), headers=teacher[1])

    assert response.status_code == 422
    assert response.json()["code"] == code


@pytest.mark.asyncio
async def test_students_cannot_import(client, student):
    response = await client.post("/api/v1/quizzes/import", files=upload(), headers=student[1])

    assert response.status_code == 403


def test_blank_generated_choices_do_not_count():
    blank = normalize_candidate({**candidate(0), "choices": ["Stroma", "<b></b>", "  "], "correct_index": 0})
    shifted = normalize_candidate({**candidate(1), "choices": ["<i></i>", "Stroma", "Thylakoid"], "correct_index": 2})
    blank_key = normalize_candidate({**candidate(2), "choices": ["Stroma", "**", "Thylakoid"], "correct_index": 1})

    assert [c["text"] for c in blank["choices"]] == ["Stroma"]
    assert [c["text"] for c in shifted["choices"]] == ["Stroma", "Thylakoid"]
    assert shifted["correct_index"] == 1

    accepted, rejected = accept_candidates([blank, shifted, blank_key])
    assert accepted == [shifted]
    assert rejected == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [KeyError("/Root"), ValueError("bad xref"), PdfReadError("EOF marker not found")])
async def test_malformed_pdf_is_unreadable(monkeypatch, error):
    def broken_reader(stream):
        raise error

    monkeypatch.setattr(document, "PdfReader", broken_reader)

    with pytest.raises(InvalidInputError) as exc_info:
        await document.extract_text("scan.pdf", b"%PDF-1.4 truncated")

    assert exc_info.value.code == "UNREADABLE_FILE"
    assert exc_info.value.status_code == 422
