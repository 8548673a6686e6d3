"""
Placeholder narrative content for profiles with no reference match.

Text is picked by keyword category from the profile's field and company
name, so the same profile always receives the same answers.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import NamedTuple

from ..core.models import StudentProfile


class _Category(NamedTuple):
    keywords: tuple[str, ...]
    what_made_unique: str
    meaningful_contribution: str
    skills_learned: str


CATEGORIES: tuple[_Category, ...] = (
    _Category(
        ("library", "education"),
        "I expected it to be more traditional, but it was actually really dynamic! "
        "The organization hosts community events and programs that I never expected. "
        "I got to work directly with people and see real impact.",
        "I created a new system for organizing resources that made it easier for "
        "people to find what they needed. The organization still uses it!",
        "I learned how to work with diverse groups of people, manage programs, and "
        "engage communities, especially the patience and communication needed when "
        "working with different age groups.",
    ),
    _Category(
        ("health", "therapy", "veterinary"),
        "I thought I'd just be shadowing, but I actually got to assist with real "
        "procedures and work directly with patients and clients. The team treated me "
        "like part of the team, not just a student observer.",
        "I helped develop a new system for tracking patient information that reduced "
        "errors. The clinic still uses it.",
        "I learned how to read charts, understand terminology, and see how care "
        "actually works in real time. You can't learn that kind of patience and "
        "empathy from a book.",
    ),
    _Category(
        ("art", "writing", "podcast"),
        "I expected to just learn technical skills, but I got to work on real "
        "projects that actually get published or broadcast! The team let me create "
        "my own content from start to finish.",
        "I produced a project that got published. Seeing my work out in the world "
        "was incredible.",
        "I learned editing and production, but I also learned how to tell stories, "
        "work with people, and make creative decisions under deadlines.",
    ),
    _Category(
        ("tech", "coding", "robotics"),
        "I expected to just learn programming, but I got to work on real projects "
        "that actually get used! We problem-solved together and celebrated wins.",
        "I programmed a feature that helped improve efficiency. Seeing code I wrote "
        "make a real difference was incredible.",
        "I learned how to debug complex systems, work in a team, and think through "
        "problems systematically, which goes way beyond what you learn in class.",
    ),
    _Category(
        ("remote", "consulting"),
        "I expected remote work to be isolating, but the team had daily check-ins "
        "and virtual meetings. I got to work with people from all over.",
        "I built a tool that streamlined the team's workflow. It's now used "
        "regularly and has improved efficiency.",
        "I learned time management, self-discipline, and how to communicate "
        "effectively in a remote environment.",
    ),
)

GENERIC = _Category(
    (),
    "I expected it to be more structured, but I got to work on real projects and "
    "see actual results. The hands-on experience was completely different from "
    "what I expected.",
    "I helped create a project that's now being used by the organization. Seeing "
    "something I made being used was incredible.",
    "I learned practical skills and how to use tools, but I also learned "
    "problem-solving, how to work with others, and how to manage projects.",
)

MOST_SURPRISING = (
    "How much goes on behind the scenes that I never knew about. The organization "
    "does so much more than I expected, and I got to be part of it."
)
SPECIFIC_MOMENT = (
    "When I saw the impact of my work firsthand. Seeing something I contributed "
    "to being used was incredible."
)
FUTURE_GOALS = (
    "This internship has influenced my career interests and confirmed that I want "
    "to pursue work in this field."
)


def category_for(profile: StudentProfile) -> _Category:
    """First category whose keyword appears in the field or company name."""
    haystacks = (profile.field.lower(), profile.internship_company.lower())
    for category in CATEGORIES:
        if any(k in text for k in category.keywords for text in haystacks):
            return category
    return GENERIC


def placeholder_answers(profile: StudentProfile) -> dict[str, str]:
    """Values for every narrative answer the profile is missing."""
    category = category_for(profile)
    defaults = {
        "question1_what_made_unique": category.what_made_unique,
        "question2_meaningful_contribution": category.meaningful_contribution,
        "question3_skills_learned": category.skills_learned,
        "question4_most_surprising": MOST_SURPRISING,
        "question5_specific_moment": SPECIFIC_MOMENT,
        "question6_future_goals": FUTURE_GOALS,
    }
    return {name: text for name, text in defaults.items() if not getattr(profile, name)}


def resolve_dates(
    start: date | None,
    end: date | None,
    *,
    today: date,
    offset_days: int = 90,
    duration_days: int = 120,
    fallback_start: date | None = None,
    fallback_end: date | None = None,
) -> tuple[date, date]:
    """
    Complete a start/end pair without touching dates that are present.

    Fallbacks (typically from a reference match) are used first, but only
    when they keep end >= start. Whatever is still missing is synthesized:
    start defaults to ``today - offset_days`` and the range spans
    ``duration_days``.
    """
    filled_start = start or fallback_start
    filled_end = end or fallback_end
    if filled_start and filled_end and filled_end < filled_start:
        if start is None:
            filled_start = None
        else:
            filled_end = None

    if filled_start is None and filled_end is None:
        filled_start = today - timedelta(days=offset_days)
        filled_end = filled_start + timedelta(days=duration_days)
    elif filled_start is None:
        filled_start = filled_end - timedelta(days=duration_days)
    elif filled_end is None:
        filled_end = filled_start + timedelta(days=duration_days)
    return filled_start, filled_end
