import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import openai
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from learning_journal.core.config import settings

logger = logging.getLogger(__name__)


class QuotaCooldown:
    """Tracks when the LLM provider may be called again after a quota error.

    Owned by the coach service; the clock is injectable for tests.
    """

    def __init__(
        self,
        seconds: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.seconds = seconds if seconds is not None else settings.QUOTA_COOLDOWN_SECONDS
        self.next_retry_at: datetime | None = None
        self._clock = clock or (lambda: datetime.now(UTC))

    def is_active(self) -> bool:
        if self.next_retry_at is None:
            return False
        if self._clock() < self.next_retry_at:
            return True
        self.next_retry_at = None
        return False

    def mark(self) -> datetime:
        self.next_retry_at = self._clock() + timedelta(seconds=self.seconds)
        logger.warning(
            "LLM quota exceeded, cooling down",
            extra={"props": {"retry_at": self.next_retry_at.isoformat()}},
        )
        return self.next_retry_at


def is_quota_error(error: BaseException) -> bool:
    """True for HTTP 429 responses and `insufficient_quota` errors."""
    if isinstance(error, openai.RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    if getattr(error, "code", None) == "insufficient_quota":
        return True
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and "insufficient_quota" in (inner.get("code"), inner.get("type")):
            return True
    return False


# Transient provider failures worth retrying; quota errors are never retried
TRANSIENT_LLM_ERRORS = (openai.APIConnectionError, openai.APITimeoutError)


def get_llm_client(temperature: float) -> BaseChatModel:
    """Builds the chat model used by the summary and habit coach."""
    logger.info(f"Using LLM model: {settings.COACH_MODEL} (temperature {temperature})")
    return ChatOpenAI(
        model=settings.COACH_MODEL,
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        temperature=temperature,
        max_retries=0,  # Retries are handled by tenacity
    )
