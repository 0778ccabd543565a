"""Candidate scoring.

A score is a tuple compared lexicographically, higher is better:
1. format tier (svg > png > webp > ico > jpeg > unknown)
2. pixel area, unknown area below every known area
3. source priority, lower priority number wins
4. canonical URL, as the final deterministic tie-break
"""

from typing import Iterable, List, NamedTuple, Tuple

from repo_icons.domain.models import IconCandidate, IconFormat

UNKNOWN_AREA = -1


class IconScore(NamedTuple):
    format_tier: int
    area: int
    source_priority: int
    url: str


def score(candidate: IconCandidate) -> IconScore:
    """Score of ``candidate``; unresolved formats rank as unknown."""
    image_format = candidate.format or IconFormat.UNKNOWN
    area = candidate.area
    return IconScore(
        format_tier=image_format.tier,
        area=area if area is not None else UNKNOWN_AREA,
        source_priority=candidate.source.priority,
        url=candidate.url,
    )


def sort_key(candidate: IconCandidate) -> Tuple[int, int, int, str]:
    """Ascending sort key equivalent to descending score.

    Tier and area are negated; priority and URL already sort ascending.
    """
    s = score(candidate)
    return (-s.format_tier, -s.area, s.source_priority, s.url)


def rank(candidates: Iterable[IconCandidate]) -> List[IconCandidate]:
    """Candidates ordered best first."""
    return sorted(candidates, key=sort_key)
