import logging
import time

import requests
from pydantic import ValidationError

from confidence_pool import db
from confidence_pool.models import Game, WeekFetch
from confidence_pool.utils.espn_schema import EspnScoreboard, to_scheduled_game

logger = logging.getLogger(__name__)

REGULAR_SEASON = 2


class ProviderError(Exception):
    """The schedule/score provider timed out, failed or sent a malformed payload"""


class EspnClient:
    """
    Fetches weekly NFL scoreboards from ESPN with client-side rate limiting.

    Every failure mode (transport, HTTP status, payload shape) is raised as
    ProviderError so callers never see a raw requests or pydantic exception.
    """

    def __init__(self, api_base_url=None, timeout=20, min_request_interval=0.5):
        self.api_base_url = (
            api_base_url or "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
        )
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "Confidence-Pool/1.0"})

        # Rate limiting configuration
        self.last_request_time = 0
        self.min_request_interval = min_request_interval
        self.max_requests_per_minute = 60  # Conservative limit
        self.request_timestamps = []

    @classmethod
    def from_config(cls, config):
        return cls(
            api_base_url=config.get("ESPN_API_BASE_URL"),
            timeout=config.get("PROVIDER_TIMEOUT", 20),
            min_request_interval=config.get("PROVIDER_MIN_REQUEST_INTERVAL", 0.5),
        )

    def _enforce_rate_limit(self):
        """Enforce rate limiting before making requests"""
        current_time = time.time()

        # Remove timestamps older than 1 minute
        self.request_timestamps = [
            ts for ts in self.request_timestamps if current_time - ts < 60
        ]

        if len(self.request_timestamps) >= self.max_requests_per_minute:
            sleep_time = 60 - (current_time - self.request_timestamps[0])
            if sleep_time > 0:
                logger.info(f"Rate limit reached. Sleeping for {sleep_time:.1f}s")
                time.sleep(sleep_time)
                self.request_timestamps = []

        # Enforce minimum interval between requests
        time_since_last = current_time - self.last_request_time
        if time_since_last < self.min_request_interval:
            time.sleep(self.min_request_interval - time_since_last)

        self.last_request_time = time.time()
        self.request_timestamps.append(self.last_request_time)

    def _get_scoreboard(self, params):
        self._enforce_rate_limit()
        url = f"{self.api_base_url}/scoreboard"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout as e:
            logger.warning(f"Request timeout for {url} {params}")
            raise ProviderError(f"Timed out fetching {url}") from e
        except requests.exceptions.HTTPError as e:
            logger.warning(f"HTTP error {e.response.status_code}: {url} {params}")
            raise ProviderError(
                f"Provider returned HTTP {e.response.status_code}"
            ) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Request failed for {url}: {e}")
            raise ProviderError(f"Request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("Provider returned a non-JSON body") from e

        try:
            return EspnScoreboard.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                f"Malformed scoreboard payload for {params}: {e.error_count()} errors"
            )
            raise ProviderError("Provider returned a malformed scoreboard") from e

    def fetch_week(self, season, week):
        """
        Fetch the games of one regular-season week.

        Returns:
            list[ScheduledGame]
        """
        scoreboard = self._get_scoreboard(
            {"seasontype": REGULAR_SEASON, "week": week, "dates": season}
        )

        games = []
        for event in scoreboard.events:
            game = to_scheduled_game(event)
            if game is None:
                logger.warning(f"Skipping event {event.id}: missing home/away side")
                continue
            games.append(game)
        return games

    def fetch_current_week(self, season):
        """Week number ESPN reports as current for a season, or None"""
        scoreboard = self._get_scoreboard({"seasontype": REGULAR_SEASON, "dates": season})
        return scoreboard.week.number if scoreboard.week else None


class DataSync:
    """
    Pulls week data from the provider into the repository and re-resolves
    outcomes. Each call handles exactly one week and commits on its own, so a
    failure leaves every other week untouched.
    """

    def __init__(self, provider):
        self.provider = provider

    def ensure_week(self, season, week):
        """
        Games of a week, fetching from the provider the first time.

        A week that came back empty is fetched again on every call until the
        provider publishes its games.
        """
        games = Game.get_games_for_week(season, week)
        if games and WeekFetch.schedule_fetched(season, week):
            return games
        return self.sync_week(season, week)

    def sync_week(self, season, week):
        """Fetch a week's schedule and upsert teams and games"""
        scheduled = self._fetch(season, week)

        try:
            for scheduled_game in scheduled:
                Game.upsert(scheduled_game, season, week)
            WeekFetch.mark(season, week, schedule=True)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Synced {len(scheduled)} games for {season} week {week}")
        return Game.get_games_for_week(season, week)

    def update_results(self, season, week):
        """
        Refetch a week and store fresh scores and winners.

        Re-running with unchanged provider data stores the same outcomes.

        Returns:
            dict: game id -> Outcome for every game of the week
        """
        scheduled = self._fetch(season, week)

        try:
            for scheduled_game in scheduled:
                Game.upsert(scheduled_game, season, week)
            WeekFetch.mark(season, week, schedule=True, results=True)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        games = Game.get_games_for_week(season, week)
        outcomes = Game.outcome_map(games)
        decided = sum(1 for outcome in outcomes.values() if outcome.winning_side)
        logger.info(
            f"Updated results for {season} week {week}: "
            f"{decided}/{len(outcomes)} games decided"
        )
        return outcomes

    def current_week(self, season):
        """Provider's current week, None when the provider cannot say"""
        try:
            return self.provider.fetch_current_week(season)
        except ProviderError as e:
            logger.info(f"Current week unavailable for {season}: {e}")
            return None

    def _fetch(self, season, week):
        try:
            return self.provider.fetch_week(season, week)
        except ProviderError:
            logger.error(f"Provider fetch failed for {season} week {week}", exc_info=True)
            raise
