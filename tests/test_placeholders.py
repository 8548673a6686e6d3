"""Tests for placeholder narrative answers and date synthesis."""

from datetime import date, timedelta

from internship_map.migrations.placeholders import (
    CATEGORIES,
    FUTURE_GOALS,
    GENERIC,
    category_for,
    placeholder_answers,
    resolve_dates,
)

TODAY = date(2025, 6, 1)


def test_category_from_field_or_company(make_profile):
    assert category_for(make_profile(field="robotics")) is CATEGORIES[3]
    assert (
        category_for(make_profile("p", "Squirrel Hill Library", field="welding"))
        is CATEGORIES[0]
    )
    assert category_for(make_profile("p", "Southside Works", field="welding")) is GENERIC


def test_placeholders_only_for_missing_answers(make_profile):
    profile = make_profile(
        field="robotics",
        question1_what_made_unique="My own answer",
        question2_meaningful_contribution="",
        question3_skills_learned=None,
    )
    answers = placeholder_answers(profile)

    assert "question1_what_made_unique" not in answers
    assert answers["question2_meaningful_contribution"] == CATEGORIES[3].meaningful_contribution
    assert answers["question3_skills_learned"] == CATEGORIES[3].skills_learned
    assert answers["question6_future_goals"] == FUTURE_GOALS


def test_placeholders_are_deterministic(make_profile):
    profile = make_profile(question1_what_made_unique=None)
    assert placeholder_answers(profile) == placeholder_answers(profile)


def test_both_dates_missing():
    start, end = resolve_dates(None, None, today=TODAY)
    assert start == TODAY - timedelta(days=90)
    assert end == start + timedelta(days=120)


def test_only_end_missing():
    start, end = resolve_dates(date(2025, 1, 6), None, today=TODAY)
    assert start == date(2025, 1, 6)
    assert end == date(2025, 1, 6) + timedelta(days=120)


def test_only_start_missing_keeps_order():
    start, end = resolve_dates(None, date(2025, 2, 1), today=TODAY)
    assert end == date(2025, 2, 1)
    assert start == date(2025, 2, 1) - timedelta(days=120)
    assert start <= end


def test_present_dates_untouched():
    assert resolve_dates(date(2025, 1, 6), date(2025, 5, 2), today=TODAY) == (
        date(2025, 1, 6),
        date(2025, 5, 2),
    )


def test_fallback_dates_used_first():
    start, end = resolve_dates(
        None,
        None,
        today=TODAY,
        fallback_start=date(2024, 9, 1),
        fallback_end=date(2024, 12, 15),
    )
    assert (start, end) == (date(2024, 9, 1), date(2024, 12, 15))


def test_fallback_discarded_when_it_would_invert_range():
    # Own start is after the fallback end
    start, end = resolve_dates(
        date(2025, 3, 1),
        None,
        today=TODAY,
        fallback_start=date(2024, 9, 1),
        fallback_end=date(2024, 12, 15),
    )
    assert start == date(2025, 3, 1)
    assert end == date(2025, 3, 1) + timedelta(days=120)


def test_custom_offsets():
    start, end = resolve_dates(None, None, today=TODAY, offset_days=10, duration_days=5)
    assert start == TODAY - timedelta(days=10)
    assert end == start + timedelta(days=5)
