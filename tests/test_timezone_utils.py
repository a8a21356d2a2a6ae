from datetime import datetime

import pytz

from confidence_pool.utils.timezone_utils import get_app_timezone, season_year_for


def test_september_starts_a_season():
    assert season_year_for(datetime(2025, 9, 4)) == 2025


def test_january_playoffs_belong_to_previous_season():
    assert season_year_for(datetime(2026, 1, 11)) == 2025
    assert season_year_for(datetime(2026, 2, 28)) == 2025


def test_offseason_counts_as_upcoming_season():
    assert season_year_for(datetime(2026, 3, 1)) == 2026


def test_unknown_timezone_falls_back_to_utc(app):
    app.config["TIMEZONE"] = "Mars/Olympus_Mons"
    assert get_app_timezone() is pytz.UTC

    app.config["TIMEZONE"] = "America/New_York"
    assert get_app_timezone().zone == "America/New_York"
