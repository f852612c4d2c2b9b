"""
matching.py

Re-identifies a deletion target among freshly scanned rows after its
setVideoId may have gone stale.

Scoring (text compared after whitespace normalization, empty target fields
never score):

    +100  same videoId
     +40  same title
     +20  same channel name
      +8  same duration text
      +6  same published-time text

Candidates scoring 0 are dropped. The rest rank by score (desc), then by
distance between fresh orderIndex and the target's scan-time orderIndex
(asc). An exact tie on both between the top two is ambiguous and yields no
match.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from wlprune.models import DeletionTarget, Entry
from wlprune.utils import safe_text

SCORE_VIDEO_ID = 100
SCORE_TITLE = 40
SCORE_CHANNEL = 20
SCORE_LENGTH = 8
SCORE_PUBLISHED = 6


@dataclass(frozen=True)
class Candidate:
    entry: Entry
    score: int
    distance: float


@dataclass(frozen=True)
class MatchResult:
    entry: Optional[Entry]
    ambiguous: bool = False
    candidates: int = 0


def score_candidate(target: Entry, candidate: Entry) -> int:
    score = 0
    if target.video_id and candidate.video_id == target.video_id:
        score += SCORE_VIDEO_ID

    pairs = (
        (target.title, candidate.title, SCORE_TITLE),
        (target.channel_name, candidate.channel_name, SCORE_CHANNEL),
        (target.length_text, candidate.length_text, SCORE_LENGTH),
        (target.published_time_text, candidate.published_time_text, SCORE_PUBLISHED),
    )
    for wanted, got, points in pairs:
        wanted = safe_text(wanted)
        if wanted and safe_text(got) == wanted:
            score += points
    return score


def _distance(a: Optional[int], b: Optional[int]) -> float:
    if a is None or b is None:
        return math.inf
    return abs(a - b)


def rank_candidates(
    fresh_entries: Iterable[Entry], target: DeletionTarget
) -> List[Candidate]:
    ranked = []
    for entry in fresh_entries:
        score = score_candidate(target.entry, entry)
        if score <= 0:
            continue
        ranked.append(
            Candidate(
                entry=entry,
                score=score,
                distance=_distance(entry.order_index, target.order_index),
            )
        )
    # stable sort keeps fresh scan order among full ties
    ranked.sort(key=lambda c: (-c.score, c.distance))
    return ranked


def find_replacement(
    fresh_entries: Iterable[Entry], target: DeletionTarget
) -> MatchResult:
    ranked = rank_candidates(fresh_entries, target)
    if not ranked:
        return MatchResult(entry=None)

    if len(ranked) > 1:
        best, second = ranked[0], ranked[1]
        if best.score == second.score and best.distance == second.distance:
            return MatchResult(entry=None, ambiguous=True, candidates=len(ranked))

    return MatchResult(entry=ranked[0].entry, candidates=len(ranked))
