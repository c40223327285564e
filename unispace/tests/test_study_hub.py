from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import List, Sequence

import pytest

from unispace.app.accounts import InMemoryAccountStore
from unispace.app.entitlements import Account, EntitlementService, PlanKey
from unispace.app.feature_gates import (
    AccountBannedError,
    ExternalServiceError,
    QuotaExceededError,
    QuotaGate,
    TrialExpiredError,
)
from unispace.app.study import (
    FALLBACK_TOPICS,
    GeminiStudyService,
    QuizQuestion,
    QuizResult,
    StudyHubService,
    Topic,
    parse_json_payload,
    score_answers,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeContentService:
    def __init__(self) -> None:
        self.fail = False
        self.calls: List[str] = []

    def generate_topics(self, text: str) -> List[Topic]:
        self.calls.append("topics")
        if self.fail:
            raise ExternalServiceError()
        return [topic.model_copy() for topic in FALLBACK_TOPICS]

    def generate_quiz(self, topic: str, context: str, count: int) -> List[QuizQuestion]:
        self.calls.append("quiz")
        if self.fail:
            raise ExternalServiceError()
        return [_question(index) for index in range(count)]

    def analyze_performance(self, questions: Sequence[QuizQuestion], answers: Sequence[int]) -> QuizResult:
        score, passed = score_answers(list(questions), list(answers))
        return QuizResult(score=score, total=len(questions), passed=passed)

    def ask(self, context: str, question: str) -> str:
        self.calls.append("ask")
        if self.fail:
            raise ExternalServiceError()
        return "Photosynthesis converts light into chemical energy."


class FakeModels:
    def __init__(self, responses: List[object]) -> None:
        self.responses = list(responses)
        self.requests: List[dict] = []

    def generate_content(self, **kwargs):
        self.requests.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(text=response)


def _question(index: int, answer: int = 0) -> QuizQuestion:
    return QuizQuestion(
        id=index,
        question=f"Question {index}?",
        options=["a", "b", "c", "d"],
        correct_answer=answer,
    )


def _gemini(*responses: object) -> GeminiStudyService:
    return GeminiStudyService(None, client=SimpleNamespace(models=FakeModels(list(responses))))


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore(
        [
            Account(id="s1", plan=PlanKey.STUDY_STANDARD, joined_at=NOW - timedelta(days=60), last_weekly_reset=NOW),
            Account(id="f1", joined_at=NOW - timedelta(days=1), last_weekly_reset=NOW),
        ]
    )


@pytest.fixture
def content() -> FakeContentService:
    return FakeContentService()


@pytest.fixture
def hub(store, content) -> StudyHubService:
    entitlements = EntitlementService(clock=lambda: NOW)
    return StudyHubService(
        repository=store,
        entitlements=entitlements,
        gate=QuotaGate(store, entitlements),
        content=content,
    )


def test_upload_records_usage_and_stores_topics(store, hub):
    topics = hub.upload_document("s1", "Cell biology notes")

    assert [topic.id for topic in topics] == ["t1", "t2", "t3"]
    assert hub.topics("s1") == topics
    assert store.require("s1").weekly_uploads == 1


def test_trial_account_gets_a_single_upload(store, hub):
    hub.upload_document("f1", "Notes")

    with pytest.raises(QuotaExceededError):
        hub.upload_document("f1", "More notes")
    assert store.require("f1").weekly_uploads == 1


def test_failed_generation_leaves_counters_untouched(store, hub, content):
    content.fail = True

    with pytest.raises(ExternalServiceError):
        hub.upload_document("s1", "Notes")

    assert store.require("s1").weekly_uploads == 0
    assert hub.topics("s1") == []


def test_empty_document_is_rejected_before_gate(store, hub, content):
    with pytest.raises(ValueError):
        hub.upload_document("s1", "   ")
    assert content.calls == []


def test_banned_account_cannot_study(store, hub, content):
    store.save(store.require("s1").model_copy(update={"is_banned": True, "reports_count": 3}))

    with pytest.raises(AccountBannedError):
        hub.upload_document("s1", "Notes")
    assert content.calls == []


def test_expired_trial_cannot_study(store, hub):
    store.save(Account(id="old", joined_at=NOW - timedelta(days=20)))

    with pytest.raises(TrialExpiredError):
        hub.upload_document("old", "Notes")


def test_quiz_on_locked_topic_is_rejected(hub):
    hub.upload_document("s1", "Notes")

    with pytest.raises(ValueError):
        hub.start_quiz("s1", "t2")
    with pytest.raises(LookupError):
        hub.start_quiz("s1", "missing")


def test_passing_quiz_unlocks_next_topic(store, hub):
    hub.upload_document("s1", "Notes")
    questions = hub.start_quiz("s1", "t1", num_questions=5)

    assert store.require("s1").weekly_quizzes == 1

    result = hub.submit_quiz("s1", "t1", questions, [0, 0, 0, 0, 1])

    assert result.score == 4
    assert result.passed is True
    first, second, third = hub.topics("s1")
    assert first.is_completed is True
    assert first.last_score == 4
    assert second.is_locked is False
    assert third.is_locked is True


def test_failing_quiz_keeps_next_topic_locked(hub):
    hub.upload_document("s1", "Notes")
    questions = hub.start_quiz("s1", "t1", num_questions=5)

    result = hub.submit_quiz("s1", "t1", questions, [1, 1, 1, 0, 0])

    assert result.passed is False
    assert hub.topics("s1")[1].is_locked is True


def test_ask_uses_ai_quota(store, hub, content):
    hub.upload_document("s1", "Notes")

    answer = hub.ask("s1", "t1", "What is photosynthesis?")

    assert "light" in answer
    assert store.require("s1").weekly_ai_queries == 1

    content.fail = True
    with pytest.raises(ExternalServiceError):
        hub.ask("s1", "t1", "Another question?")
    assert store.require("s1").weekly_ai_queries == 1


def test_trial_account_has_no_ai_queries(hub):
    hub.upload_document("f1", "Notes")

    with pytest.raises(QuotaExceededError):
        hub.ask("f1", "t1", "Anything?")


def test_score_answers_applies_pass_mark():
    questions = [_question(index) for index in range(10)]

    assert score_answers(questions, [0] * 7 + [1] * 3) == (7, True)
    assert score_answers(questions, [0] * 6) == (6, False)
    assert score_answers([], []) == (0, False)


def test_parse_json_payload_strips_code_fences():
    assert parse_json_payload('```json\n[{"id": 1}]\n```', []) == [{"id": 1}]
    assert parse_json_payload('[{"id": 1', []) == []
    assert parse_json_payload(None, {}) == {}


def test_gemini_without_key_returns_fallback_topics():
    service = GeminiStudyService(None)

    assert service.configured is False
    assert service.generate_topics("notes") == list(FALLBACK_TOPICS)
    with pytest.raises(ExternalServiceError):
        service.ask("context", "question")


def test_gemini_topics_unlock_only_first():
    payload = json.dumps(
        [
            {"id": "a", "title": "Cells", "description": "Basics"},
            {"id": "b", "title": "Organelles", "description": "Parts"},
        ]
    )
    service = _gemini(payload)

    topics = service.generate_topics("Biology text")

    assert [topic.is_locked for topic in topics] == [False, True]
    request = service._client.models.requests[0]
    assert request["model"] == "gemini-2.5-flash"
    assert request["config"].response_mime_type == "application/json"


def test_gemini_topic_failure_returns_overview_topic():
    topics = _gemini(RuntimeError("timeout")).generate_topics("text")

    assert [topic.id for topic in topics] == ["err1"]


def test_gemini_quiz_parses_camel_case_fields():
    payload = json.dumps(
        [{"id": 1, "question": "2+2?", "options": ["1", "2", "3", "4"], "correctAnswer": 3, "explanation": ""}]
    )

    [question] = _gemini(payload).generate_quiz("Arithmetic", "context", 1)

    assert question.correct_answer == 3


def test_gemini_quiz_failures_raise():
    with pytest.raises(ExternalServiceError):
        _gemini("[]").generate_quiz("Arithmetic", "context", 3)
    with pytest.raises(ExternalServiceError):
        _gemini(RuntimeError("quota")).generate_quiz("Arithmetic", "context", 3)
    with pytest.raises(ValueError):
        _gemini().generate_quiz("Arithmetic", "context", 0)


def test_gemini_analysis_defaults_and_failure():
    questions = [_question(0), _question(1)]

    partial = _gemini('{"strengths": ["Recall"]}').analyze_performance(questions, [0, 0])
    failed = _gemini(RuntimeError("down")).analyze_performance(questions, [0, 1])

    assert partial.strengths == ["Recall"]
    assert partial.weaknesses == ["Specific Details"]
    assert partial.key_terms == ["Review All"]
    assert partial.passed is True
    assert failed.score == 1
    assert failed.strengths == ["N/A"]


def test_gemini_ask_empty_answer():
    service = _gemini("   ")

    assert service.ask("context", "question") == "No answer found."
    assert service._client.models.requests[0]["config"] is None
