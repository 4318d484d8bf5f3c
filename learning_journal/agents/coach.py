"""Weekly summary and habit coach backed by an LLM, with a heuristic fallback.

The service never raises to its callers: quota errors start a cooldown and
serve the fallback, other failures degrade as described per method.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from learning_journal.agents.constants import (
    AI_ERROR_HABIT_MESSAGE,
    EMPTY_SUMMARY_MESSAGE,
    HABIT_SYSTEM_PROMPT,
    MISSING_KEY_HABIT_MESSAGE,
    NO_LOGS_HABIT_MESSAGE,
    SUMMARY_SYSTEM_PROMPT,
    HabitFocus,
    HabitPlanStatus,
)
from learning_journal.agents.prompts import (
    build_fallback_plan,
    build_heuristic_summary,
    format_habit_prompt,
    format_summary_prompt,
)
from learning_journal.agents.utils import (
    TRANSIENT_LLM_ERRORS,
    QuotaCooldown,
    get_llm_client,
    is_quota_error,
)
from learning_journal.core.config import settings
from learning_journal.core.exceptions import ExternalServiceError
from learning_journal.graphql.utils import format_timestamp

logger = logging.getLogger(__name__)


@dataclass
class SummaryResult:
    text: str
    retry_at: datetime | None = None


@dataclass
class HabitPlanResult:
    status: HabitPlanStatus
    focus: HabitFocus
    plan: str | None = None
    message: str | None = None
    retry_at: datetime | None = None


# Define retry parameters
stop_conditions = stop_after_attempt(settings.LLM_RETRY_ATTEMPTS)
wait_conditions = wait_exponential(multiplier=1, min=1, max=8)


class CoachService:
    def __init__(
        self,
        api_key: str | None = None,
        cooldown: QuotaCooldown | None = None,
        llm_factory: Callable[[float], BaseChatModel] = get_llm_client,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.cooldown = cooldown or QuotaCooldown()
        self._llm_factory = llm_factory
        self._clients: dict[float, BaseChatModel] = {}

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _client(self, temperature: float) -> BaseChatModel:
        # Built lazily, once per temperature
        if temperature not in self._clients:
            self._clients[temperature] = self._llm_factory(temperature)
        return self._clients[temperature]

    @retry(
        stop=stop_conditions,
        wait=wait_conditions,
        retry=retry_if_exception_type(TRANSIENT_LLM_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),  # Log before sleep on retry
        reraise=True,
    )
    async def _invoke(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        chain = self._client(temperature) | StrOutputParser()
        return await chain.ainvoke([("system", system_prompt), ("human", user_prompt)])

    async def _complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        """Calls the LLM. Failures are raised as ExternalServiceError."""
        try:
            content = await self._invoke(system_prompt, user_prompt, temperature)
        except Exception as e:
            if is_quota_error(e):
                raise ExternalServiceError(str(e), quota_exceeded=True) from e
            raise ExternalServiceError(str(e)) from e
        content = (content or "").strip()
        if not content:
            raise ExternalServiceError("No content returned")
        return content

    async def generate_weekly_summary(self, logs: Sequence[Any]) -> SummaryResult:
        if not logs:
            return SummaryResult(text=EMPTY_SUMMARY_MESSAGE)
        if not self.enabled:
            return SummaryResult(text=build_heuristic_summary(logs))
        if self.cooldown.is_active():
            return SummaryResult(
                text=build_heuristic_summary(logs), retry_at=self.cooldown.next_retry_at
            )

        try:
            text = await self._complete(
                SUMMARY_SYSTEM_PROMPT, format_summary_prompt(logs), settings.SUMMARY_TEMPERATURE
            )
        except ExternalServiceError as e:
            if e.quota_exceeded:
                retry_at = self.cooldown.mark()
                return SummaryResult(text=build_heuristic_summary(logs), retry_at=retry_at)
            logger.error(f"generate_weekly_summary fallback: {e}", exc_info=True)
            return SummaryResult(text=build_heuristic_summary(logs))
        return SummaryResult(text=text)

    async def request_habit_plan(
        self, logs: Sequence[Any], focus: HabitFocus = HabitFocus.CONSISTENCY
    ) -> HabitPlanResult:
        if not logs:
            return HabitPlanResult(
                status=HabitPlanStatus.ERROR, focus=focus, message=NO_LOGS_HABIT_MESSAGE
            )
        if not self.enabled:
            return HabitPlanResult(
                status=HabitPlanStatus.ERROR, focus=focus, message=MISSING_KEY_HABIT_MESSAGE
            )
        if self.cooldown.is_active():
            retry_at = self.cooldown.next_retry_at
            return HabitPlanResult(
                status=HabitPlanStatus.SUCCESS,
                focus=focus,
                plan=build_fallback_plan(logs, focus, format_timestamp(retry_at)),
                retry_at=retry_at,
            )

        try:
            plan = await self._complete(
                HABIT_SYSTEM_PROMPT, format_habit_prompt(logs, focus), settings.HABIT_TEMPERATURE
            )
        except ExternalServiceError as e:
            if e.quota_exceeded:
                retry_at = self.cooldown.mark()
                logger.warning(
                    f"request_habit_plan quota error - serving fallback until {format_timestamp(retry_at)}"
                )
                return HabitPlanResult(
                    status=HabitPlanStatus.SUCCESS,
                    focus=focus,
                    plan=build_fallback_plan(logs, focus, format_timestamp(retry_at)),
                    retry_at=retry_at,
                )
            logger.error(f"request_habit_plan error: {e}", exc_info=True)
            return HabitPlanResult(
                status=HabitPlanStatus.ERROR, focus=focus, message=AI_ERROR_HABIT_MESSAGE
            )
        return HabitPlanResult(status=HabitPlanStatus.SUCCESS, focus=focus, plan=plan)
