"""
Pick set validation

Checks a candidate pick set for one user/season/week before anything is
written. Rules run in a fixed order and the first failure is reported, so the
same bad submission always produces the same message.
"""

from typing import NamedTuple

from confidence_pool.utils.scoring import Side, confidence_range

DUAL_SIDE_MESSAGE = "Choose only one team per game."
DUPLICATE_CONFIDENCE_MESSAGE = "Each confidence value must appear only once."
EMPTY_WEEK_MESSAGE = "No games are scheduled for this week."


class PickCandidate(NamedTuple):
    game_id: str
    side: Side
    confidence: int


def validate_picks(picks, week_game_ids):
    """
    Validate a candidate pick set against the games of its week.

    Args:
        picks: list of PickCandidate
        week_game_ids: ids of every game scheduled that week; the legal
            confidence range is anchored to this count, not to len(picks)

    Returns:
        tuple: (is_valid, message)
    """
    week_game_ids = list(week_game_ids)

    valid, message = _check_single_side(picks)
    if not valid:
        return False, message

    valid, message = _check_unique_confidence(picks)
    if not valid:
        return False, message

    valid, message = _check_confidence_range(picks, len(week_game_ids))
    if not valid:
        return False, message

    valid, message = _check_known_games(picks, week_game_ids)
    if not valid:
        return False, message

    return True, "Valid picks"


def _check_single_side(picks):
    seen = set()
    for pick in picks:
        if pick.game_id in seen:
            return False, DUAL_SIDE_MESSAGE
        seen.add(pick.game_id)
    return True, None


def _check_unique_confidence(picks):
    values = [pick.confidence for pick in picks]
    if len(values) != len(set(values)):
        return False, DUPLICATE_CONFIDENCE_MESSAGE
    return True, None


def _check_confidence_range(picks, game_count):
    legal = confidence_range(game_count)
    if not picks:
        return True, None
    if not legal:
        return False, EMPTY_WEEK_MESSAGE

    legal_values = set(legal)
    for pick in picks:
        if pick.confidence not in legal_values:
            return False, f"Confidence must be between {min(legal)} and {max(legal)}."
    return True, None


def _check_known_games(picks, week_game_ids):
    known = set(week_game_ids)
    for pick in picks:
        if pick.game_id not in known:
            return False, f"Game {pick.game_id} is not part of this week."
    return True, None
