"""Tests for ResponseClassifier and ResponseComposer.

Classification is deterministic; template choice is checked against the
pools and, with a seeded Random, for reproducibility.
"""

import random
from datetime import datetime, timezone

import pytest

from daylog.core.daykey import DayKey
from daylog.core.responses import (
    BALANCED_SUMMARY_TEMPLATES,
    Category,
    EMPTY_ENTRY_BODY,
    GENERIC_SUMMARY_TEMPLATES,
    OPENING_PROMPTS,
    REPLY_TEMPLATES,
    ResponseClassifier,
    ResponseComposer,
    Rule,
    SINGLE_SUMMARY_TEMPLATES,
    time_of_day,
)

from conftest import bot_msg, user_msg


@pytest.fixture
def classifier():
    return ResponseClassifier()


@pytest.fixture
def composer():
    return ResponseComposer(random.Random(42))


# ── classify() ────────────────────────────────────────────────

@pytest.mark.parametrize(
    "text, expected",
    [
        ("I was so stressed today", Category.STRESS),
        ("Had the weirdest DREAM last night", Category.DREAM),
        ("Long meeting about the new project", Category.WORK),
        ("Grabbed coffee with an old friend", Category.SOCIAL),
        ("Did an hour of yoga", Category.EXERCISE),
        ("Went for a hike after work", Category.BALANCED),
        ("Cleaned the house and then cooked and read", Category.BUSY_DAY),
        ("I had cereal.", Category.DEFAULT),
        ("", Category.DEFAULT),
    ],
)
def test_classify(classifier, text, expected):
    assert classifier.classify(text) == expected


def test_stress_beats_dream(classifier):
    assert classifier.classify("That dream left me anxious all morning") == Category.STRESS


def test_dream_beats_activities(classifier):
    assert classifier.classify("I dreamt about work and the gym") == Category.DREAM


def test_multiple_activities_beat_single_activity(classifier):
    assert classifier.classify("Dinner with family, then a walk") == Category.BALANCED


def test_long_message_is_a_busy_day(classifier):
    text = " ".join(["stuff"] * 30)
    assert classifier.classify(text) == Category.BUSY_DAY


def test_none_text_is_default(classifier):
    assert classifier.classify(None) == Category.DEFAULT


def test_rules_are_ordered_by_priority_not_position():
    rules = [
        Rule(Category.WORK, 20, keywords=("tea",)),
        Rule(Category.SOCIAL, 10, keywords=("tea",)),
    ]
    assert ResponseClassifier(rules).classify("tea time") == Category.SOCIAL


def test_later_rules_are_not_evaluated_after_a_match():
    calls = []

    def spy(lowered):
        calls.append(lowered)
        return True

    rules = [Rule(Category.STRESS, 1, keywords=("ugh",)), Rule(Category.BUSY_DAY, 2, predicate=spy)]
    assert ResponseClassifier(rules).classify("ugh") == Category.STRESS
    assert calls == []


# ── compose_reply() ───────────────────────────────────────────

@pytest.mark.parametrize("category", list(Category))
def test_reply_comes_from_category_pool(composer, category):
    assert composer.compose_reply(category) in REPLY_TEMPLATES[category]


def test_no_category_uses_default_pool(composer):
    assert composer.compose_reply(None) in REPLY_TEMPLATES[Category.DEFAULT]


def test_seeded_composers_agree():
    a = ResponseComposer(random.Random(3))
    b = ResponseComposer(random.Random(3))
    picks_a = [a.compose_reply(Category.WORK) for _ in range(10)]
    picks_b = [b.compose_reply(Category.WORK) for _ in range(10)]
    assert picks_a == picks_b


# ── compose_opening_prompt() ──────────────────────────────────

@pytest.mark.parametrize(
    "hour, bucket",
    [(0, "night"), (5, "night"), (6, "morning"), (10, "morning"), (11, "afternoon"),
     (16, "afternoon"), (17, "evening"), (23, "evening")],
)
def test_time_of_day_buckets(hour, bucket):
    assert time_of_day(hour) == bucket


def test_morning_prompt_never_comes_from_evening_pool():
    ts = datetime(2026, 10, 17, 8, tzinfo=timezone.utc)
    morning = {t.format(weekday="Saturday") for t in OPENING_PROMPTS["morning"]}
    evening = {t.format(weekday="Saturday") for t in OPENING_PROMPTS["evening"]}

    for seed in range(25):
        prompt = ResponseComposer(random.Random(seed)).compose_opening_prompt(ts)
        assert prompt in morning
        assert prompt not in evening


def test_opening_prompt_names_the_weekday():
    ts = datetime(2026, 10, 17, 20, tzinfo=timezone.utc)
    prompts = {ResponseComposer(random.Random(s)).compose_opening_prompt(ts) for s in range(40)}
    assert "How was your Saturday?" in prompts


# ── compose_reflective_summary() ──────────────────────────────

def test_balanced_day_names_both_activities(composer):
    messages = [
        user_msg("Morning hike up the canyon"),
        bot_msg("Sounds lovely"),
        user_msg("Then a long afternoon of work"),
    ]
    summary = composer.compose_reflective_summary(messages)

    balanced = {
        t.format(first="work", second="staying active") for t in BALANCED_SUMMARY_TEMPLATES
    }
    assert summary in balanced


def test_summary_scores_the_whole_session_not_the_last_message(composer):
    messages = [user_msg("Worked on the deadline"), user_msg("Saw my friend"), user_msg("Quiet night.")]
    summary = composer.compose_reflective_summary(messages)
    assert "work" in summary and "time with people you care about" in summary


def test_summary_ignores_non_user_text(composer):
    messages = [bot_msg("How was work and the gym?"), user_msg("Fine.")]
    assert composer.compose_reflective_summary(messages) in GENERIC_SUMMARY_TEMPLATES


def test_single_activity_summary(composer):
    summary = composer.compose_reflective_summary([user_msg("Went swimming")])
    assert summary in SINGLE_SUMMARY_TEMPLATES[Category.EXERCISE]


def test_stressful_session_summary(composer):
    summary = composer.compose_reflective_summary([user_msg("Felt overwhelmed")])
    assert summary in SINGLE_SUMMARY_TEMPLATES[Category.STRESS]


def test_empty_session_summary_is_generic(composer):
    assert composer.compose_reflective_summary([]) in GENERIC_SUMMARY_TEMPLATES


# ── entry draft ───────────────────────────────────────────────

def test_entry_body_skips_ignored_and_non_user_messages(composer):
    skipped = user_msg("private note", is_ignored_in_entry=True)
    messages = [bot_msg("How's your Saturday?"), user_msg("Went hiking"), skipped, user_msg("Pizza after")]

    assert composer.compose_entry_body(messages) == "Went hiking\n\nPizza after"


def test_entry_body_when_nothing_usable(composer):
    assert composer.compose_entry_body([bot_msg("hi")]) == EMPTY_ENTRY_BODY


def test_entry_title(composer):
    assert composer.compose_entry_title(DayKey.parse("2026-10-05")) == "Monday, October 5"


def test_compose_entry_pairs_title_and_body(composer):
    title, body = composer.compose_entry(DayKey.parse("2026-10-17"), [user_msg("Quiet day")])
    assert (title, body) == ("Saturday, October 17", "Quiet day")
