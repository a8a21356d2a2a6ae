"""
Scoring Engine for the confidence pool

Pure functions over snapshots: the legal confidence range for a week, the
outcome of a single game, and per-week / per-season totals. Nothing in this
module touches the database; callers load rows and hand in plain values.
"""

import enum
from collections import defaultdict
from typing import NamedTuple

MAX_CONFIDENCE = 16


class GameStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


class Side(str, enum.Enum):
    HOME = "home"
    AWAY = "away"


class Outcome(str, enum.Enum):
    HOME = "home"
    AWAY = "away"
    TIED = "tied"
    UNDECIDED = "undecided"

    @property
    def winning_side(self):
        """The side credited by this outcome, None for tied/undecided"""
        if self is Outcome.HOME:
            return Side.HOME
        if self is Outcome.AWAY:
            return Side.AWAY
        return None


class PickEntry(NamedTuple):
    """One stored pick, detached from the ORM"""

    user: str
    game_id: str
    side: Side
    confidence: int


def confidence_range(game_count):
    """
    Legal confidence values for a week with ``game_count`` games.

    The top value is always 16 and the run descends one value per game, so a
    14-game bye week uses 16..3 rather than 14..1.

    Returns:
        list[int]: values in descending order, empty for an empty week
    """
    if game_count <= 0:
        return []
    lowest = max(1, MAX_CONFIDENCE + 1 - game_count)
    return list(range(MAX_CONFIDENCE, lowest - 1, -1))


def resolve_outcome(status, home_score, away_score):
    """
    Resolve a game to home/away/tied/undecided.

    Only final games resolve; anything else stays undecided no matter what the
    scoreboard shows. Safe to call repeatedly as new data arrives.
    """
    if GameStatus(status) is not GameStatus.FINAL:
        return Outcome.UNDECIDED

    home_score = home_score or 0
    away_score = away_score or 0
    if home_score == away_score:
        return Outcome.TIED
    if home_score > away_score:
        return Outcome.HOME
    return Outcome.AWAY


def score_week(outcomes, picks):
    """
    Total credited confidence per user for one week.

    Args:
        outcomes: mapping of game id to Outcome
        picks: iterable of PickEntry

    Returns:
        dict: user -> int, one entry for every user with at least one pick
    """
    totals = {}
    for pick in picks:
        totals.setdefault(pick.user, 0)
        outcome = outcomes.get(pick.game_id, Outcome.UNDECIDED)
        if outcome.winning_side is not None and outcome.winning_side == pick.side:
            totals[pick.user] += pick.confidence
    return totals


def score_season(weeks):
    """
    Sum weekly totals across a season.

    Args:
        weeks: iterable of (outcomes, picks) pairs, one per week

    Returns:
        dict: user -> int; users who skipped weeks keep what they earned
    """
    totals = defaultdict(int)
    for outcomes, picks in weeks:
        for user, points in score_week(outcomes, picks).items():
            totals[user] += points
    return dict(totals)


def rank_scores(scores):
    """Sort (user, total) pairs by descending total, user id breaking ties"""
    return sorted(scores.items(), key=lambda item: (-item[1], item[0]))
