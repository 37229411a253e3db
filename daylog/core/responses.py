# daylog/core/responses.py
"""
Keyword-driven stand-in for an AI counterpart.

ResponseClassifier maps one message to a Category using an ordered list of
rules (first match wins). ResponseComposer turns a Category into a reply by
drawing from a fixed template pool, and also builds the opening prompt of a
day, the reflective summary of a whole session and the journal entry draft.

All randomness flows through an injected random.Random so a seeded instance
makes every choice reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import random
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from daylog.core.daykey import DayKey
from daylog.memory.models import ChatMessage


class Category(str, Enum):
    STRESS = "stress"
    DREAM = "dream"
    BALANCED = "balanced"
    WORK = "work"
    SOCIAL = "social"
    EXERCISE = "exercise"
    BUSY_DAY = "busy_day"
    DEFAULT = "default"


# ---------- KEYWORDS ----------

STRESS_KEYWORDS: Tuple[str, ...] = (
    "stress", "anxious", "anxiety", "overwhelm", "frustrat", "angry",
    "upset", "worried", "worry", "exhausted", "annoyed", "burned out", "burnt out",
)

DREAM_KEYWORDS: Tuple[str, ...] = (
    "dream", "nightmare", "dreamt", "woke up from",
)

WORK_KEYWORDS: Tuple[str, ...] = (
    "work", "meeting", "project", "office", "deadline", "boss",
    "colleague", "coworker", "client", "presentation",
)

SOCIAL_KEYWORDS: Tuple[str, ...] = (
    "friend", "family", "dinner with", "lunch with", "coffee with", "party",
    "my mom", "my dad", "sister", "brother", "partner", "kids",
)

EXERCISE_KEYWORDS: Tuple[str, ...] = (
    "hike", "hiking", "running", "jog", "gym", "yoga", "swim",
    "bike ride", "cycling", "exercise", "walk",
)

ACTIVITY_KEYWORDS: Dict[Category, Tuple[str, ...]] = {
    Category.WORK: WORK_KEYWORDS,
    Category.SOCIAL: SOCIAL_KEYWORDS,
    Category.EXERCISE: EXERCISE_KEYWORDS,
}

ACTIVITY_LABELS: Dict[Category, str] = {
    Category.WORK: "work",
    Category.SOCIAL: "time with people you care about",
    Category.EXERCISE: "staying active",
}

BUSY_DAY_MIN_WORDS = 30
BUSY_DAY_MIN_CONNECTORS = 2
BUSY_DAY_CONNECTORS: Tuple[str, ...] = (" and ", " then ", " after that ", " afterwards ", " later ")


def _contains_any(lowered: str, keywords: Iterable[str]) -> bool:
    return any(k in lowered for k in keywords)


def activities_in(lowered: str) -> List[Category]:
    """Activity categories mentioned in already lower-cased text, in priority order."""
    return [cat for cat, keywords in ACTIVITY_KEYWORDS.items() if _contains_any(lowered, keywords)]


def _mentions_several_activities(lowered: str) -> bool:
    return len(activities_in(lowered)) >= 2


def _looks_busy(lowered: str) -> bool:
    if len(lowered.split()) >= BUSY_DAY_MIN_WORDS:
        return True
    padded = f" {lowered} "
    connectors = sum(padded.count(c) for c in BUSY_DAY_CONNECTORS)
    return connectors >= BUSY_DAY_MIN_CONNECTORS


# ---------- CLASSIFIER ----------

@dataclass(frozen=True)
class Rule:
    category: Category
    priority: int
    keywords: Tuple[str, ...] = ()
    predicate: Optional[Callable[[str], bool]] = None

    def matches(self, lowered: str) -> bool:
        if self.keywords and _contains_any(lowered, self.keywords):
            return True
        return bool(self.predicate and self.predicate(lowered))


DEFAULT_RULES: Tuple[Rule, ...] = (
    Rule(Category.STRESS, 10, keywords=STRESS_KEYWORDS),
    Rule(Category.DREAM, 20, keywords=DREAM_KEYWORDS),
    Rule(Category.BALANCED, 30, predicate=_mentions_several_activities),
    Rule(Category.WORK, 40, keywords=WORK_KEYWORDS),
    Rule(Category.SOCIAL, 50, keywords=SOCIAL_KEYWORDS),
    Rule(Category.EXERCISE, 60, keywords=EXERCISE_KEYWORDS),
    Rule(Category.BUSY_DAY, 70, predicate=_looks_busy),
)


class ResponseClassifier:
    """
    Map a single message to a Category.

    Rules are evaluated by ascending priority and evaluation stops at the
    first match. Anything unmatched (including empty text) is DEFAULT.
    """

    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES) -> None:
        self.rules: List[Rule] = sorted(rules, key=lambda r: r.priority)

    def classify(self, text: str) -> Category:
        lowered = (text or "").lower()
        for rule in self.rules:
            if rule.matches(lowered):
                return rule.category
        return Category.DEFAULT


# ---------- TEMPLATES ----------

REPLY_TEMPLATES: Dict[Category, Tuple[str, ...]] = {
    Category.STRESS: (
        "That sounds really stressful. What do you think is weighing on you the most right now?",
        "I'm sorry today has been hard. Is there anything that helped, even a little?",
        "It makes sense to feel that way. What would make tomorrow feel a bit lighter?",
    ),
    Category.DREAM: (
        "Dreams can be so vivid. How did you feel when you woke up?",
        "Interesting dream! Does any part of it connect to what's going on in your life?",
        "Thanks for sharing that dream. What image from it has stuck with you the most?",
    ),
    Category.BALANCED: (
        "Sounds like a well-rounded day. Which part did you enjoy the most?",
        "You fit a lot into today. How did the different parts of it balance out?",
        "That's quite a mix! What made the biggest difference to how you felt?",
    ),
    Category.WORK: (
        "How did work go overall? Anything you're proud of getting done?",
        "Work can take up so much of a day. Was there a moment that stood out?",
        "What's on your mind about work going into tomorrow?",
    ),
    Category.SOCIAL: (
        "It's great that you spent time with others. What was the best part of being together?",
        "Connection matters. How did you feel after seeing them?",
        "That sounds lovely. Did you talk about anything memorable?",
    ),
    Category.EXERCISE: (
        "Nice job getting moving today! How did your body feel afterwards?",
        "That sounds energizing. Is this part of a regular routine for you?",
        "Getting outside or active can change a whole day. What was it like?",
    ),
    Category.BUSY_DAY: (
        "That's a full day! What was the highlight among everything you did?",
        "Wow, you were busy. Did you get any time just for yourself?",
        "So much happened today. What would you want to remember a year from now?",
    ),
    Category.DEFAULT: (
        "That sounds like a great way to spend your day! How did that make you feel?",
        "Thanks for sharing that with me. What was the most memorable part about it?",
        "Interesting! I'd love to hear more about that experience.",
        "Sometimes the simple moments are the most rewarding ones, don't you think?",
    ),
}

# Hour ranges are [start, end) in the reference time zone.
OPENING_BUCKETS: Tuple[Tuple[str, int, int], ...] = (
    ("morning", 6, 11),
    ("afternoon", 11, 17),
    ("evening", 17, 24),
    ("night", 0, 6),
)

OPENING_PROMPTS: Dict[str, Tuple[str, ...]] = {
    "morning": (
        "Good morning! How's your {weekday} starting out?",
        "Morning! What are you looking forward to today?",
        "How did you sleep? What's on your mind this {weekday} morning?",
    ),
    "afternoon": (
        "How's your {weekday} going so far?",
        "Good afternoon! What's been the best part of your day?",
        "What have you been up to today?",
    ),
    "evening": (
        "How was your {weekday}?",
        "Good evening! What stood out about today?",
        "As the day winds down, what are you grateful for?",
    ),
    "night": (
        "Up late? What's keeping you awake this {weekday}?",
        "It's late. What's on your mind tonight?",
        "Can't sleep? Tell me about your day.",
    ),
}

BALANCED_SUMMARY_TEMPLATES: Tuple[str, ...] = (
    "Today found a balance between {first} and {second}. Making room for both says a lot about what matters to you.",
    "A well-rounded day: {first} shared the stage with {second}. Notice how each one shaped your mood.",
)

SINGLE_SUMMARY_TEMPLATES: Dict[Category, Tuple[str, ...]] = {
    Category.STRESS: (
        "Today carried some real pressure. Naming it is a first step toward easing it.",
        "It sounds like today was heavy. Be gentle with yourself tonight.",
    ),
    Category.DREAM: (
        "Your dreams found their way into today's reflections. They may be pointing at something worth exploring.",
    ),
    Category.WORK: (
        "Work was at the center of today. Think about what gave you energy and what drained it.",
    ),
    Category.SOCIAL: (
        "Today was shaped by the people around you. Those connections are worth holding onto.",
    ),
    Category.EXERCISE: (
        "Movement was part of today. Your body and mind both benefit from that.",
    ),
}

GENERIC_SUMMARY_TEMPLATES: Tuple[str, ...] = (
    "Looking back on today, there's a thread of small moments worth remembering.",
    "Today had its own rhythm. Taking time to reflect on it is a good habit.",
    "Every day leaves something behind. Today's notes capture a bit of who you are right now.",
)

EMPTY_ENTRY_BODY = "Nothing was logged for this day yet."


def time_of_day(hour: int) -> str:
    for name, start, end in OPENING_BUCKETS:
        if start <= hour < end:
            return name
    return "night"


# ---------- COMPOSER ----------

class ResponseComposer:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def compose_reply(self, category: Optional[Category]) -> str:
        pool = REPLY_TEMPLATES[category or Category.DEFAULT]
        return self.rng.choice(pool)

    def compose_opening_prompt(self, timestamp: datetime) -> str:
        """
        Pick a greeting for the hour of `timestamp`. The caller converts the
        timestamp into the reference zone first.
        """
        bucket = time_of_day(timestamp.hour)
        template = self.rng.choice(OPENING_PROMPTS[bucket])
        return template.format(weekday=timestamp.strftime("%A"))

    def compose_reflective_summary(self, messages: Iterable[ChatMessage]) -> str:
        """
        Score the whole session, not just its last message.

        Two or more activity categories win over everything else; then stress,
        dream and a single activity; otherwise a generic reflection.
        """
        combined = " ".join(m.content for m in messages if m.is_user).lower()

        activities = activities_in(combined)
        if len(activities) >= 2:
            template = self.rng.choice(BALANCED_SUMMARY_TEMPLATES)
            return template.format(
                first=ACTIVITY_LABELS[activities[0]],
                second=ACTIVITY_LABELS[activities[1]],
            )

        if _contains_any(combined, STRESS_KEYWORDS):
            return self.rng.choice(SINGLE_SUMMARY_TEMPLATES[Category.STRESS])
        if _contains_any(combined, DREAM_KEYWORDS):
            return self.rng.choice(SINGLE_SUMMARY_TEMPLATES[Category.DREAM])
        if activities:
            return self.rng.choice(SINGLE_SUMMARY_TEMPLATES[activities[0]])

        return self.rng.choice(GENERIC_SUMMARY_TEMPLATES)

    def compose_entry_title(self, day: DayKey) -> str:
        d = day.day
        return f"{d.strftime('%A, %B')} {d.day}"

    def compose_entry_body(self, messages: Iterable[ChatMessage]) -> str:
        """User messages in order, minus those flagged out of the entry."""
        paragraphs = [
            m.content.strip()
            for m in messages
            if m.is_user and not m.is_ignored_in_entry and not m.is_system_notification
        ]
        paragraphs = [p for p in paragraphs if p]
        if not paragraphs:
            return EMPTY_ENTRY_BODY
        return "\n\n".join(paragraphs)

    def compose_entry(self, day: DayKey, messages: Iterable[ChatMessage]) -> Tuple[str, str]:
        """(title, body) for the day's journal entry draft."""
        return self.compose_entry_title(day), self.compose_entry_body(messages)
