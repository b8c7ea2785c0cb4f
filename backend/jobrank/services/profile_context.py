"""
Profile Context Builder

Assembles the compact freelancer summary used both as the profile
embedding input and as ranking context for the LLM.

Line order is fixed: Name, Headline, About, Skills, Experience, Rate.
Lines with no data are omitted; if every line is omitted the fallback
string is returned instead.
"""

from typing import Optional, Sequence

from jobrank.schemas import ExperienceRow, PreferencesRow, ProfileRow, SkillRow

EMPTY_PROFILE_CONTEXT = "No profile data available."
MAX_EXPERIENCES = 5


def format_number(value: Optional[float]) -> str:
    """Render 50.0 as "50" and 42.5 as "42.5"; None as "?"."""
    if value is None:
        return "?"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def build_profile_context(
    profile: Optional[ProfileRow],
    skills: Sequence[SkillRow],
    experiences: Sequence[ExperienceRow],
    preferences: Optional[PreferencesRow],
) -> str:
    """
    Build the newline-joined profile summary.

    Args:
        profile: Profile row, or None if the user has none
        skills: User skills in stored order
        experiences: User experiences in stored order (first five used)
        preferences: Rate/tightness preferences, or None

    Returns:
        Summary text, or EMPTY_PROFILE_CONTEXT when there is nothing to say

    Example:
        >>> build_profile_context(ProfileRow(display_name="Ada"), [], [], None)
        'Name: Ada'
    """
    parts = []

    if profile is not None:
        if profile.display_name:
            parts.append(f"Name: {profile.display_name}")
        if profile.headline:
            parts.append(f"Headline: {profile.headline}")
        if profile.about:
            parts.append(f"About: {profile.about}")

    if skills:
        rendered = [
            f"{s.name} ({format_number(s.years)}y)" if s.years else s.name
            for s in skills
        ]
        parts.append(f"Skills: {', '.join(rendered)}")

    if experiences:
        rendered = [
            f"{e.title} at {e.company}" if e.company else e.title
            for e in experiences[:MAX_EXPERIENCES]
        ]
        parts.append(f"Experience: {'; '.join(rendered)}")

    if preferences is not None and (preferences.hourly_min or preferences.hourly_max):
        currency = preferences.currency or "USD"
        parts.append(
            f"Rate: {currency} {format_number(preferences.hourly_min)}"
            f"–{format_number(preferences.hourly_max)}/hr"
        )

    if not parts:
        return EMPTY_PROFILE_CONTEXT
    return "\n".join(parts)
