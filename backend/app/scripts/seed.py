"""
Quiz Platform - Demo Seeder
Creates the bootstrap admin, two teachers, a handful of students and sample quizzes.

Usage:
    python -m app.scripts.seed
"""
import asyncio

from sqlalchemy import select

from app.core.config import settings
from app.core.database import async_session_maker, init_db
from app.core.identity import Identity
from app.core.security import get_password_hash
from app.models.quiz import Quiz
from app.models.user import User, UserRole
from app.schemas.question import QuestionCreate
from app.schemas.quiz import QuizCreate, QuizSettingsIn
from app.services.catalog import CatalogService

DEMO_PASSWORD = "Password123"
STUDENT_COUNT = 5
QUIZ_COUNT = 4
QUESTIONS_PER_QUIZ = 5


async def get_or_create_user(session, email: str, name: str, role: UserRole, password: str) -> User:
    user = (await session.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None:
        user = User(
            email=email,
            name=name,
            role=role.value,
            hashed_password=get_password_hash(password),
        )
        session.add(user)
        await session.flush()
        print(f"Created {role.value}: {email}")
    return user


def sample_questions(quiz_number: int) -> list[QuestionCreate]:
    return [
        QuestionCreate(
            stem=f"Sample Question {j} for Quiz {quiz_number}: What is the answer?",
            choices=["Option A", "Option B", "Option C", "Option D"],
            correct_index=0,
            marks=2,
            topic_tags=["sample", "demo"],
            explanation=f"This is the correct answer for question {j}.",
        )
        for j in range(1, QUESTIONS_PER_QUIZ + 1)
    ]


async def seed() -> None:
    await init_db()

    async with async_session_maker() as session:
        await get_or_create_user(
            session, settings.ADMIN_EMAIL, "Admin User", UserRole.ADMIN, settings.ADMIN_PASSWORD
        )
        teachers = [
            await get_or_create_user(
                session, f"teacher{i}@school.edu", f"Teacher {i}", UserRole.TEACHER, DEMO_PASSWORD
            )
            for i in (1, 2)
        ]
        for i in range(1, STUDENT_COUNT + 1):
            await get_or_create_user(
                session, f"student{i}@school.edu", f"Student {i}", UserRole.STUDENT, DEMO_PASSWORD
            )

        teacher = teachers[0]
        existing = (await session.execute(
            select(Quiz.id).where(Quiz.creator_id == teacher.id).limit(1)
        )).scalar_one_or_none()

        if existing is None:
            catalog = CatalogService(session)
            identity = Identity(user_id=teacher.id, role=UserRole.TEACHER)
            for i in range(1, QUIZ_COUNT + 1):
                quiz = await catalog.create_quiz(identity, QuizCreate(
                    title=f"Sample Quiz {i}",
                    description=f"This is a sample quiz number {i} for demonstration purposes.",
                    questions=sample_questions(i),
                    settings=QuizSettingsIn(
                        duration_minutes=30,
                        pass_marks=5,
                        # Publish even-numbered quizzes
                        is_published=i % 2 == 0,
                    ),
                ))
                print(f"Created quiz: {quiz.title} ({quiz.total_marks} marks)")
        else:
            print("Sample quizzes already present")

        await session.commit()
        print(f"\nSeeding complete. Demo password: {DEMO_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed())
