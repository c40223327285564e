"""Study content models exchanged with the generative content provider."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PASS_MARK_PERCENT = 70


class Topic(BaseModel):
    id: str
    title: str
    description: str = ""
    is_locked: bool = Field(default=False, alias="isLocked")
    is_completed: bool = Field(default=False, alias="isCompleted")
    last_score: Optional[int] = Field(default=None, alias="lastScore")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class QuizQuestion(BaseModel):
    id: int
    question: str
    options: List[str]
    correct_answer: int = Field(alias="correctAnswer")
    explanation: str = ""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("correct_answer")
    @classmethod
    def _validate_answer(cls, value: int) -> int:
        if value < 0:
            raise ValueError("correct_answer must be >= 0")
        return value


class QuizResult(BaseModel):
    score: int
    total: int
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    key_terms: List[str] = Field(default_factory=list, alias="keyTerms")
    passed: bool = False

    model_config = ConfigDict(populate_by_name=True, frozen=True)


def score_answers(questions: List[QuizQuestion], answers: List[int]) -> tuple[int, bool]:
    """Count correct answers and apply the pass mark."""

    score = sum(
        1
        for index, question in enumerate(questions)
        if index < len(answers) and answers[index] == question.correct_answer
    )
    if not questions:
        return 0, False
    passed = (score / len(questions)) * 100 >= PASS_MARK_PERCENT
    return score, passed
