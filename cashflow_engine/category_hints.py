"""Keyword table that tags recurring patterns with a best-effort category hint.

Rules are evaluated in order against the normalized description and the
first substring match wins.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

HOUSING = 'housing'
VEHICLE = 'vehicle'
TELECOM = 'telecom'
UTILITIES = 'utilities'
SUBSCRIPTION = 'subscription'
GENERAL = 'general'

HINT_RULES: Tuple[Tuple[str, str], ...] = (
    ('rent', HOUSING),
    ('insurance', VEHICLE),
    ('phone', TELECOM),
    ('mobile', TELECOM),
    ('internet', TELECOM),
    ('wifi', TELECOM),
    ('electric', UTILITIES),
    ('gas', UTILITIES),
    ('water', UTILITIES),
    ('netflix', SUBSCRIPTION),
    ('spotify', SUBSCRIPTION),
    ('subscription', SUBSCRIPTION),
)


def category_hint(
    normalized_description: str,
    rules: Iterable[Tuple[str, str]] = HINT_RULES,
    default: str = GENERAL,
) -> str:
    """Return the tag of the first rule whose keyword occurs in the description."""
    text = normalized_description or ''
    for keyword, tag in rules:
        if keyword in text:
            return tag
    return default


def extend_rules(extra: Sequence[Tuple[str, str]], *, before: bool = True) -> Tuple[Tuple[str, str], ...]:
    """Return a new rule table with ``extra`` placed ahead of (or after) the defaults."""
    normalized = tuple((keyword.lower(), tag) for keyword, tag in extra)
    return normalized + HINT_RULES if before else HINT_RULES + normalized
