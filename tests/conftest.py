import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SCHEDULER_ENABLED", "false")

from confidence_pool import create_app, db  # noqa: E402
from confidence_pool.utils.data_sync import DataSync, ProviderError  # noqa: E402
from confidence_pool.utils.espn_schema import ScheduledGame, TeamLine  # noqa: E402
from confidence_pool.utils.scoring import GameStatus  # noqa: E402

SEASON = 2025
KICKOFF = datetime(2025, 9, 7, 17, 0, tzinfo=timezone.utc)

TEAMS = {
    "21": ("Eagles", "PHI"),
    "6": ("Cowboys", "DAL"),
    "12": ("Chiefs", "KC"),
    "24": ("Chargers", "LAC"),
    "33": ("Ravens", "BAL"),
    "2": ("Bills", "BUF"),
    "17": ("Patriots", "NE"),
    "20": ("Jets", "NYJ"),
}


def team_line(team_id, score=None):
    name, abbreviation = TEAMS.get(team_id, (f"Team {team_id}", f"T{team_id}"))
    return TeamLine(
        team_id=team_id,
        name=name,
        abbreviation=abbreviation,
        logo_url=f"https://a.espncdn.com/i/teamlogos/nfl/500/{abbreviation.lower()}.png",
        score=score,
    )


def make_game(
    game_id,
    home_id,
    away_id,
    status=GameStatus.SCHEDULED,
    home_score=None,
    away_score=None,
    offset_hours=0,
):
    return ScheduledGame(
        id=game_id,
        kickoff=KICKOFF + timedelta(hours=offset_hours),
        status=status,
        home=team_line(home_id, home_score),
        away=team_line(away_id, away_score),
    )


def make_week(count, status=GameStatus.SCHEDULED, prefix="g"):
    """``count`` games with generated team ids"""
    return [
        make_game(
            f"{prefix}{n}",
            str(100 + 2 * n),
            str(101 + 2 * n),
            status=status,
            offset_hours=n,
        )
        for n in range(1, count + 1)
    ]


class FakeProvider:
    """In-memory stand-in for EspnClient"""

    def __init__(self, weeks=None, current_week=None):
        self.weeks = dict(weeks or {})
        self.current = current_week
        self.failing_weeks = set()
        self.calls = []

    def set_week(self, season, week, games):
        self.weeks[(season, week)] = list(games)

    def fetch_week(self, season, week):
        self.calls.append((season, week))
        if (season, week) in self.failing_weeks:
            raise ProviderError(f"Timed out fetching {season} week {week}")
        return list(self.weeks.get((season, week), []))

    def fetch_current_week(self, season):
        if self.current is None:
            raise ProviderError("No current week")
        return self.current


@pytest.fixture()
def provider():
    return FakeProvider()


@pytest.fixture()
def app(provider):
    app = create_app("testing", data_sync=DataSync(provider))
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def data_sync(app):
    return app.extensions["data_sync"]


@pytest.fixture()
def week_one(provider, data_sync):
    """Week 1 of SEASON stored with four scheduled games"""
    games = [
        make_game("401", "21", "6", offset_hours=0),
        make_game("402", "12", "24", offset_hours=1),
        make_game("403", "33", "2", offset_hours=2),
        make_game("404", "17", "20", offset_hours=3),
    ]
    provider.set_week(SEASON, 1, games)
    return data_sync.ensure_week(SEASON, 1)
