"""Generative study content backed by Google Gemini."""
from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Protocol, Sequence

from google import genai
from google.genai import types

from ..feature_gates.exceptions import ExternalServiceError
from .models import QuizQuestion, QuizResult, Topic, score_answers

logger = logging.getLogger(__name__)

_TEXT_LIMIT = 4000
_QUIZ_CONTEXT_LIMIT = 3000

FALLBACK_TOPICS = (
    Topic(id="t1", title="Introduction & Basics", description="Core concepts and definitions."),
    Topic(id="t2", title="Intermediate Concepts", description="Applying the basics.", is_locked=True),
    Topic(
        id="t3",
        title="Advanced Analysis",
        description="Complex scenarios and critical thinking.",
        is_locked=True,
    ),
)

ERROR_TOPIC = Topic(id="err1", title="General Overview", description="Generated due to connection error.")


class StudyContentService(Protocol):
    """External generator of study topics, quizzes and answers."""

    def generate_topics(self, text: str) -> List[Topic]:
        ...

    def generate_quiz(self, topic: str, context: str, count: int) -> List[QuizQuestion]:
        ...

    def analyze_performance(self, questions: Sequence[QuizQuestion], answers: Sequence[int]) -> QuizResult:
        ...

    def ask(self, context: str, question: str) -> str:
        ...


def parse_json_payload(text: Optional[str], fallback: Any) -> Any:
    """Parse model output as JSON, tolerating markdown code fences."""

    if not text:
        return fallback
    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        return json.loads(cleaned)
    except ValueError as exc:
        logger.warning("Could not parse model output as JSON (likely truncated): %s", exc)
        return fallback


class GeminiStudyService:
    """Study content generation using the ``google-genai`` client."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = "gemini-2.5-flash",
        client: Any = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._api_key) or self._client is not None

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise ExternalServiceError(message="The study assistant is not configured.")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def _generate(self, prompt: str, *, as_json: bool = True) -> str:
        config = types.GenerateContentConfig(response_mime_type="application/json") if as_json else None
        response = self._get_client().models.generate_content(
            model=self._model,
            contents=prompt,
            config=config,
        )
        return getattr(response, "text", "") or ""

    def generate_topics(self, text: str) -> List[Topic]:
        if not self.configured:
            return list(FALLBACK_TOPICS)

        prompt = (
            "Analyze the following study text and break it down into 3-5 distinct learning topics.\n"
            "Return ONLY a JSON array. Keep \"description\" very concise (max 15 words). Do not repeat text.\n"
            'Structure: [{"id": "unique_id", "title": "Topic Title", "description": "Short summary."}]\n'
            f'Text: "{text[:_TEXT_LIMIT]}"'
        )
        try:
            data = parse_json_payload(self._generate(prompt), [])
        except Exception:
            logger.exception("Topic generation failed")
            return [ERROR_TOPIC]

        if not isinstance(data, list):
            return [ERROR_TOPIC]
        topics: List[Topic] = []
        for index, item in enumerate(data):
            if not isinstance(item, dict) or not item.get("title"):
                continue
            topics.append(
                Topic(
                    id=str(item.get("id") or f"topic-{index}"),
                    title=str(item["title"]),
                    description=str(item.get("description", "")),
                    is_locked=bool(topics),
                    is_completed=False,
                )
            )
        return topics or [ERROR_TOPIC]

    def generate_quiz(self, topic: str, context: str, count: int) -> List[QuizQuestion]:
        if count < 1:
            raise ValueError("count must be >= 1")
        prompt = (
            f'Generate a {count}-question multiple choice quiz about: "{topic}".\n'
            "Use the provided context. Return a valid JSON array; options must be an array of 4 strings; "
            "correctAnswer is the index 0-3. Each item has id, question, options, correctAnswer, explanation.\n"
            f'Context: "{context[:_QUIZ_CONTEXT_LIMIT]}"'
        )
        try:
            data = parse_json_payload(self._generate(prompt), [])
            questions = [QuizQuestion.model_validate(item) for item in data] if isinstance(data, list) else []
        except ExternalServiceError:
            raise
        except Exception as exc:
            logger.exception("Quiz generation failed for topic %r", topic)
            raise ExternalServiceError(detail={"operation": "generate_quiz"}) from exc

        if not questions:
            raise ExternalServiceError(
                message="No quiz questions could be generated. Please try again.",
                detail={"operation": "generate_quiz"},
            )
        return questions

    def analyze_performance(self, questions: Sequence[QuizQuestion], answers: Sequence[int]) -> QuizResult:
        score, passed = score_answers(list(questions), list(answers))
        total = len(questions)
        if not self.configured:
            return QuizResult(score=score, total=total, passed=passed)

        prompt = (
            "Analyze this quiz performance.\n"
            f"Questions: {json.dumps([q.question for q in questions][:10])}\n"
            f"Score: {score}/{total}\n"
            "Return JSON with 3 items each: strengths: string[], weaknesses: string[], keyTerms: string[]"
        )
        try:
            analysis = parse_json_payload(self._generate(prompt), {})
        except Exception:
            logger.warning("Performance analysis failed; returning score only", exc_info=True)
            return QuizResult(
                score=score,
                total=total,
                passed=passed,
                strengths=["N/A"],
                weaknesses=["N/A"],
                key_terms=["N/A"],
            )

        if not isinstance(analysis, dict):
            analysis = {}
        return QuizResult(
            score=score,
            total=total,
            passed=passed,
            strengths=list(analysis.get("strengths") or ["General Knowledge"]),
            weaknesses=list(analysis.get("weaknesses") or ["Specific Details"]),
            key_terms=list(analysis.get("keyTerms") or ["Review All"]),
        )

    def ask(self, context: str, question: str) -> str:
        prompt = f'Context: "{context[:_TEXT_LIMIT]}"\nQuestion: "{question}"\nAnswer concisely (max 50 words).'
        try:
            answer = self._generate(prompt, as_json=False).strip()
        except ExternalServiceError:
            raise
        except Exception as exc:
            logger.exception("Study question failed")
            raise ExternalServiceError(detail={"operation": "ask"}) from exc
        return answer or "No answer found."
