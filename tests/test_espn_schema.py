from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from confidence_pool.utils.espn_schema import (
    EspnEvent,
    EspnScoreboard,
    EspnStatusType,
    map_status,
    to_scheduled_game,
)
from confidence_pool.utils.scoring import GameStatus


def competitor(home_away, team_id, abbreviation, score="0"):
    return {
        "homeAway": home_away,
        "score": score,
        "team": {
            "id": team_id,
            "abbreviation": abbreviation,
            "displayName": f"{abbreviation} Full Name",
            "shortDisplayName": abbreviation.title(),
            "logo": f"https://a.espncdn.com/{abbreviation.lower()}.png",
        },
    }


def event(event_id="401772510", state="pre", completed=False, competitors=None):
    if competitors is None:
        competitors = [
            competitor("home", "21", "PHI", "24"),
            competitor("away", "6", "DAL", "20"),
        ]
    return {
        "id": event_id,
        "date": "2025-09-05T00:20Z",
        "competitions": [
            {
                "competitors": competitors,
                "status": {
                    "type": {"state": state, "completed": completed, "name": "STATUS"}
                },
            }
        ],
    }


def test_parses_scoreboard_with_week():
    board = EspnScoreboard.model_validate(
        {"week": {"number": 3}, "events": [event(), event("401772511")]}
    )
    assert board.week.number == 3
    assert [e.id for e in board.events] == ["401772510", "401772511"]


def test_zulu_date_becomes_aware_utc():
    parsed = EspnEvent.model_validate(event())
    assert parsed.date == datetime(2025, 9, 5, 0, 20, tzinfo=timezone.utc)


def test_string_scores_are_integers():
    game = to_scheduled_game(
        EspnEvent.model_validate(event(state="post", completed=True))
    )
    assert game.home.score == 24
    assert game.away.score == 20


def test_blank_score_is_absent():
    competitors = [
        competitor("home", "21", "PHI", ""),
        competitor("away", "6", "DAL", ""),
    ]
    game = to_scheduled_game(EspnEvent.model_validate(event(competitors=competitors)))
    assert game.home.score is None
    assert game.away.score is None


def test_numeric_ids_are_kept_as_strings():
    payload = event(event_id=401772510)
    payload["competitions"][0]["competitors"][0]["team"]["id"] = 21
    game = to_scheduled_game(EspnEvent.model_validate(payload))
    assert game.id == "401772510"
    assert game.home.team_id == "21"


def test_team_line_uses_short_name_and_logo():
    game = to_scheduled_game(EspnEvent.model_validate(event()))
    assert game.home.name == "Phi"
    assert game.home.abbreviation == "PHI"
    assert game.home.logo_url == "https://a.espncdn.com/phi.png"


def test_logo_falls_back_to_logos_list():
    payload = event()
    team = payload["competitions"][0]["competitors"][1]["team"]
    del team["logo"]
    team["logos"] = [{"href": "https://a.espncdn.com/alt/dal.png"}]
    game = to_scheduled_game(EspnEvent.model_validate(payload))
    assert game.away.logo_url == "https://a.espncdn.com/alt/dal.png"


@pytest.mark.parametrize(
    "state, completed, expected",
    [
        ("pre", False, GameStatus.SCHEDULED),
        ("in", False, GameStatus.IN_PROGRESS),
        ("post", True, GameStatus.FINAL),
        ("post", False, GameStatus.SCHEDULED),
    ],
)
def test_map_status(state, completed, expected):
    assert map_status(EspnStatusType(state=state, completed=completed)) is expected


def test_event_missing_a_side_is_skipped():
    payload = event(competitors=[competitor("home", "21", "PHI")])
    assert to_scheduled_game(EspnEvent.model_validate(payload)) is None


def test_event_without_competitions_is_malformed():
    payload = event()
    payload["competitions"] = []
    with pytest.raises(ValidationError):
        EspnEvent.model_validate(payload)


def test_unknown_side_is_malformed():
    competitors = [
        competitor("home", "21", "PHI"),
        competitor("neutral", "6", "DAL"),
    ]
    with pytest.raises(ValidationError):
        EspnEvent.model_validate(event(competitors=competitors))


def test_negative_score_is_malformed():
    competitors = [
        competitor("home", "21", "PHI", "-7"),
        competitor("away", "6", "DAL", "3"),
    ]
    with pytest.raises(ValidationError):
        EspnEvent.model_validate(event(competitors=competitors))


def test_non_numeric_score_is_malformed():
    competitors = [
        competitor("home", "21", "PHI", "twenty"),
        competitor("away", "6", "DAL", "3"),
    ]
    with pytest.raises(ValidationError):
        EspnEvent.model_validate(event(competitors=competitors))
