from dataclasses import dataclass
from enum import Enum

# Delimiters separating instructions from user-written journal text in prompts
PROMPT_DATA_TAG_START = "<data>"
PROMPT_DATA_TAG_END = "</data>"
PROMPT_INSTRUCTION_TAG_START = "<instruction>"
PROMPT_INSTRUCTION_TAG_END = "</instruction>"

# Upper bound on log entries rendered into a single prompt
MAX_PROMPT_LOGS = 40

EMPTY_SUMMARY_MESSAGE = "No learning activity recorded for this range."
NO_LOGS_HABIT_MESSAGE = "Add a few learning logs to unlock a personalized habit plan."
MISSING_KEY_HABIT_MESSAGE = "Habit coach unavailable (missing OPENAI_API_KEY)."
AI_ERROR_HABIT_MESSAGE = "Habit plan unavailable (AI error)."

SUMMARY_SYSTEM_PROMPT = (
    "You are an encouraging learning coach who writes concise weekly summaries."
)
HABIT_SYSTEM_PROMPT = (
    "You are an encouraging but pragmatic habit coach helping lifelong learners stay on track."
)


class HabitFocus(Enum):
    CONSISTENCY = "consistency"
    BALANCE = "balance"
    MOMENTUM = "momentum"


class HabitPlanStatus(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class HabitFocusConfig:
    focus: HabitFocus
    label: str
    description: str
    prompt_directive: str
    fallback_habits: tuple[str, ...]
    fallback_accountability: str


HABIT_FOCUS_OPTIONS: tuple[HabitFocusConfig, ...] = (
    HabitFocusConfig(
        focus=HabitFocus.CONSISTENCY,
        label="Improve consistency",
        description="Establish a steady cadence and reduce skipped sessions.",
        prompt_directive=(
            "Prioritize reliable routines, stacked triggers, and realistic minimum goals "
            "that keep momentum even on busy days."
        ),
        fallback_habits=(
            "Anchor a 20-minute study block to an existing routine (e.g., right after breakfast).",
            "Set a daily 'minimum viable session' of 10 minutes to keep the streak alive.",
            "Reserve one weekly review slot to scan reflections and plan the next focus tag.",
        ),
        fallback_accountability="Share a weekly progress snapshot with a friend or mentor every Friday.",
    ),
    HabitFocusConfig(
        focus=HabitFocus.BALANCE,
        label="Avoid burnout",
        description="Keep learning sustainable and protect energy.",
        prompt_directive=(
            "Focus on sustainable pacing, deliberate recovery, and variety so the learner "
            "stays energized without overloading."
        ),
        fallback_habits=(
            "Cap intense sessions at 45 minutes and follow with a 10-minute cool-down reflection.",
            "Pair deep-focus days with lighter 'maintenance' sessions on a different tag.",
            "Schedule one no-study evening per week to recharge and celebrate wins.",
        ),
        fallback_accountability="Log energy levels beside each session and review the pattern every Sunday.",
    ),
    HabitFocusConfig(
        focus=HabitFocus.MOMENTUM,
        label="Build momentum",
        description="Accelerate progress and celebrate wins.",
        prompt_directive=(
            "Emphasize compounding progress, visible milestones, and fast feedback loops "
            "that keep motivation high."
        ),
        fallback_habits=(
            "Kick off each session by previewing yesterday's reflection and choosing one quick win.",
            "Create a three-step roadmap for your top tag and tick one step every week.",
            "Close sessions with a 2-sentence highlight to reinforce progress.",
        ),
        fallback_accountability="Track milestone completions in a visible progress bar and review it every Monday.",
    ),
)


def get_habit_focus_config(focus: HabitFocus) -> HabitFocusConfig:
    for option in HABIT_FOCUS_OPTIONS:
        if option.focus is focus:
            return option
    raise ValueError(f"Unknown habit focus: {focus}")
