import pytest

from confidence_pool.utils.scoring import (
    GameStatus,
    Outcome,
    PickEntry,
    Side,
    confidence_range,
    rank_scores,
    resolve_outcome,
    score_season,
    score_week,
)


# ---------------------------------------------------------------------------
# confidence_range
# ---------------------------------------------------------------------------

class TestConfidenceRange:
    def test_full_week(self):
        assert sorted(confidence_range(16)) == list(range(1, 17))

    def test_bye_week_keeps_sixteen_on_top(self):
        assert sorted(confidence_range(14)) == list(range(3, 17))

    def test_single_game(self):
        assert confidence_range(1) == [16]

    def test_empty_week(self):
        assert confidence_range(0) == []

    def test_descending_order(self):
        assert confidence_range(3) == [16, 15, 14]

    @pytest.mark.parametrize("n", range(0, 17))
    def test_exactly_n_distinct_values(self, n):
        values = confidence_range(n)
        assert len(values) == n
        assert len(set(values)) == n
        if n:
            assert max(values) == 16
            assert min(values) == 17 - n

    def test_oversized_week_caps_at_sixteen_values(self):
        assert sorted(confidence_range(18)) == list(range(1, 17))


# ---------------------------------------------------------------------------
# resolve_outcome
# ---------------------------------------------------------------------------

class TestResolveOutcome:
    def test_final_tie(self):
        assert resolve_outcome(GameStatus.FINAL, 24, 24) is Outcome.TIED

    def test_in_progress_is_undecided(self):
        assert resolve_outcome(GameStatus.IN_PROGRESS, 24, 10) is Outcome.UNDECIDED

    def test_final_away_win(self):
        assert resolve_outcome(GameStatus.FINAL, 0, 7) is Outcome.AWAY

    def test_final_home_win(self):
        assert resolve_outcome(GameStatus.FINAL, 31, 17) is Outcome.HOME

    def test_scheduled_is_undecided(self):
        assert resolve_outcome(GameStatus.SCHEDULED, 0, 0) is Outcome.UNDECIDED

    def test_accepts_stored_string_status(self):
        assert resolve_outcome("final", 3, 0) is Outcome.HOME

    def test_repeat_calls_agree(self):
        first = resolve_outcome(GameStatus.FINAL, 20, 17)
        assert resolve_outcome(GameStatus.FINAL, 20, 17) is first

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            resolve_outcome("halftime", 7, 3)

    def test_winning_side(self):
        assert Outcome.HOME.winning_side is Side.HOME
        assert Outcome.AWAY.winning_side is Side.AWAY
        assert Outcome.TIED.winning_side is None
        assert Outcome.UNDECIDED.winning_side is None


# ---------------------------------------------------------------------------
# score_week / score_season
# ---------------------------------------------------------------------------

class TestScoreWeek:
    def test_only_correct_side_is_credited(self):
        picks = [
            PickEntry("alice", "X", Side.HOME, 12),
            PickEntry("alice", "Y", Side.AWAY, 5),
        ]
        outcomes = {"X": Outcome.HOME, "Y": Outcome.HOME}
        assert score_week(outcomes, picks) == {"alice": 12}

    def test_ties_and_undecided_credit_nobody(self):
        picks = [
            PickEntry("alice", "X", Side.HOME, 16),
            PickEntry("bob", "X", Side.AWAY, 15),
            PickEntry("bob", "Y", Side.HOME, 14),
        ]
        outcomes = {"X": Outcome.TIED, "Y": Outcome.UNDECIDED}
        assert score_week(outcomes, picks) == {"alice": 0, "bob": 0}

    def test_game_missing_from_outcomes_counts_as_undecided(self):
        picks = [PickEntry("carol", "Z", Side.HOME, 9)]
        assert score_week({}, picks) == {"carol": 0}

    def test_no_picks(self):
        assert score_week({"X": Outcome.HOME}, []) == {}

    def test_order_independent(self):
        picks = [
            PickEntry("alice", "X", Side.HOME, 16),
            PickEntry("bob", "X", Side.HOME, 3),
            PickEntry("alice", "Y", Side.AWAY, 15),
        ]
        outcomes = {"X": Outcome.HOME, "Y": Outcome.AWAY}
        assert score_week(outcomes, picks) == score_week(outcomes, list(reversed(picks)))


class TestScoreSeason:
    def test_sums_weeks_including_zero_weeks(self):
        week1 = (
            {"a": Outcome.HOME},
            [PickEntry("alice", "a", Side.HOME, 16), PickEntry("bob", "a", Side.AWAY, 16)],
        )
        week2 = (
            {"b": Outcome.AWAY},
            [PickEntry("alice", "b", Side.HOME, 10)],
        )
        week3 = (
            {"c": Outcome.AWAY},
            [PickEntry("bob", "c", Side.AWAY, 7)],
        )

        totals = score_season([week1, week2, week3])

        assert totals == {"alice": 16, "bob": 7}
        assert totals["alice"] == sum(
            score_week(outcomes, picks).get("alice", 0)
            for outcomes, picks in [week1, week2, week3]
        )

    def test_empty_season(self):
        assert score_season([]) == {}


def test_rank_scores_breaks_ties_by_user():
    ranking = rank_scores({"carol": 20, "alice": 31, "bob": 20, "dave": 0})
    assert ranking == [("alice", 31), ("bob", 20), ("carol", 20), ("dave", 0)]
