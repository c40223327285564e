"""Study hub orchestration: quota-gated uploads, quizzes and AI questions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Sequence

from ..entitlements.models import ActionType
from ..entitlements.service import EntitlementService
from ..feature_gates.context import EntitlementContext
from ..feature_gates.quota import QuotaGate
from .gemini import StudyContentService
from .models import QuizQuestion, QuizResult, Topic

if TYPE_CHECKING:  # pragma: no cover
    from ..accounts.store import AccountRepository

logger = logging.getLogger(__name__)


@dataclass
class _StudyMaterial:
    text: str
    topics: List[Topic]


@dataclass
class StudyHubService:
    """Runs study actions through the quota gate before calling the content provider.

    Usage is recorded only after the provider call returns, so a failed call
    leaves the account's weekly counters untouched.
    """

    repository: "AccountRepository"
    entitlements: EntitlementService
    gate: QuotaGate
    content: StudyContentService
    _materials: Dict[str, _StudyMaterial] = field(default_factory=dict, init=False, repr=False)

    def topics(self, account_id: str) -> List[Topic]:
        material = self._materials.get(account_id)
        return list(material.topics) if material else []

    def upload_document(self, account_id: str, text: str) -> List[Topic]:
        if not text.strip():
            raise ValueError("Document text is empty")
        self._require_usable(account_id)
        with self.gate.reserve(account_id, ActionType.UPLOAD):
            topics = self.content.generate_topics(text)
        self._materials[account_id] = _StudyMaterial(text=text, topics=list(topics))
        logger.info("Generated %s topics for account=%s", len(topics), account_id)
        return list(topics)

    def start_quiz(self, account_id: str, topic_id: str, num_questions: int = 5) -> List[QuizQuestion]:
        self._require_usable(account_id)
        topic = self._unlocked_topic(account_id, topic_id)
        with self.gate.reserve(account_id, ActionType.QUIZ):
            questions = self.content.generate_quiz(
                topic.title, self._context_for(account_id, topic), num_questions
            )
        return questions

    def submit_quiz(
        self,
        account_id: str,
        topic_id: str,
        questions: Sequence[QuizQuestion],
        answers: Sequence[int],
    ) -> QuizResult:
        """Score a finished quiz; passing completes the topic and unlocks the next one."""

        topic = self._unlocked_topic(account_id, topic_id)
        result = self.content.analyze_performance(questions, answers)
        if result.passed:
            self._complete_topic(account_id, topic.id, result.score)
        return result

    def ask(self, account_id: str, topic_id: str, question: str) -> str:
        if not question.strip():
            raise ValueError("Question is empty")
        self._require_usable(account_id)
        topic = self._unlocked_topic(account_id, topic_id)
        with self.gate.reserve(account_id, ActionType.AI):
            answer = self.content.ask(self._context_for(account_id, topic), question)
        return answer

    def _require_usable(self, account_id: str) -> None:
        account = self.repository.require(account_id)
        EntitlementContext.build(account, self.entitlements).require_usable()

    def _unlocked_topic(self, account_id: str, topic_id: str) -> Topic:
        for topic in self.topics(account_id):
            if topic.id == topic_id:
                if topic.is_locked:
                    raise ValueError(f"Topic {topic_id} is locked")
                return topic
        raise LookupError(f"Unknown topic: {topic_id}")

    def _context_for(self, account_id: str, topic: Topic) -> str:
        material = self._materials.get(account_id)
        context = f"Context for {topic.title}: {topic.description}."
        if material:
            context = f"{context}\n{material.text}"
        return context

    def _complete_topic(self, account_id: str, topic_id: str, score: int) -> None:
        material = self._materials[account_id]
        updated: List[Topic] = []
        previous_id = None
        for topic in material.topics:
            if topic.id == topic_id:
                topic = topic.model_copy(update={"is_completed": True, "last_score": score})
            elif previous_id == topic_id:
                topic = topic.model_copy(update={"is_locked": False})
            updated.append(topic)
            previous_id = topic.id
        material.topics = updated
