"""
Timezone utility functions for the confidence pool
"""

from datetime import datetime

import pytz
from flask import current_app


def get_app_timezone():
    """Get the application's configured timezone"""
    try:
        timezone_name = current_app.config.get("TIMEZONE", "UTC")
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def get_current_time():
    """Get current time in the application's timezone"""
    return datetime.now(get_app_timezone())


def season_year_for(moment):
    """
    NFL season a moment belongs to.

    The regular season opens in September and runs into January, so January
    and February still count toward the previous year's season.
    """
    if moment.month < 3:
        return moment.year - 1
    return moment.year


def get_current_season():
    """Season year for today in the application's timezone"""
    return season_year_for(get_current_time())
