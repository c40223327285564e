"""Study hub: generated topics, quizzes and AI answers behind the quota gate."""

from .gemini import FALLBACK_TOPICS, GeminiStudyService, StudyContentService, parse_json_payload
from .models import PASS_MARK_PERCENT, QuizQuestion, QuizResult, Topic, score_answers
from .service import StudyHubService

__all__ = [
    "FALLBACK_TOPICS",
    "GeminiStudyService",
    "PASS_MARK_PERCENT",
    "QuizQuestion",
    "QuizResult",
    "StudyContentService",
    "StudyHubService",
    "Topic",
    "parse_json_payload",
    "score_answers",
]
