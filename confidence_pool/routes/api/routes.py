import logging
from collections import defaultdict
from functools import wraps

from flask import abort, current_app, jsonify, request

from confidence_pool import limiter
from confidence_pool.models import Game, Pick, PickSubmissionError
from confidence_pool.routes.api import bp
from confidence_pool.utils.cache_utils import cached_route, invalidate_scoreboards
from confidence_pool.utils.data_sync import ProviderError
from confidence_pool.utils.scoring import Side, rank_scores, score_season, score_week
from confidence_pool.utils.timezone_utils import get_current_season
from confidence_pool.utils.validation import PickCandidate

logger = logging.getLogger(__name__)


def add_no_cache_headers(f):
    """Clients poll these endpoints; keep intermediaries from caching them"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = current_app.make_response(f(*args, **kwargs))
        response.headers["Cache-Control"] = (
            "no-store, no-cache, must-revalidate, max-age=0"
        )
        return response

    return decorated_function


def _data_sync():
    return current_app.extensions["data_sync"]


def _parse_int(value, field):
    if isinstance(value, bool):
        abort(400, description=f"{field} must be a number")
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description=f"{field} must be a number")


def _parse_season(value, required=False):
    if value is None or value == "":
        if required:
            abort(400, description="season is required")
        return get_current_season()
    return _parse_int(value, "season")


def _parse_week(value):
    if value is None or value == "":
        abort(400, description="week is required")
    week = _parse_int(value, "week")
    max_week = current_app.config.get("REGULAR_SEASON_WEEKS", 18)
    if not 1 <= week <= max_week:
        abort(400, description=f"week must be between 1 and {max_week}")
    return week


def _parse_candidates(raw_picks):
    if not isinstance(raw_picks, list):
        abort(400, description="picks must be a list")

    candidates = []
    for raw in raw_picks:
        if not isinstance(raw, dict):
            abort(400, description="Each pick must be an object")

        game_id = raw.get("game_id")
        if game_id is None or game_id == "":
            abort(400, description="Each pick needs a game_id")

        side = raw.get("side")
        if side not in (Side.HOME.value, Side.AWAY.value):
            abort(400, description="side must be 'home' or 'away'")

        confidence = raw.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, int):
            abort(400, description="confidence must be a whole number")

        candidates.append(PickCandidate(str(game_id), Side(side), confidence))
    return candidates


def _outcomes_payload(outcomes):
    return {game_id: outcome.value for game_id, outcome in outcomes.items()}


def _scores_payload(scores):
    return {
        "scores": scores,
        "ranking": [
            {"rank": position, "user": user, "score": score}
            for position, (user, score) in enumerate(rank_scores(scores), start=1)
        ],
    }


@bp.route("/week-info")
def week_info():
    """Default season, the provider's current week and the selectable weeks"""
    season = get_current_season()
    max_week = current_app.config.get("REGULAR_SEASON_WEEKS", 18)

    default_week = _data_sync().current_week(season)
    if default_week is not None and not 1 <= default_week <= max_week:
        default_week = None

    return jsonify(
        {
            "season": season,
            "default_week": default_week,
            "weeks": list(range(1, max_week + 1)),
        }
    )


@bp.route("/games")
@add_no_cache_headers
def games():
    """Games for a week, pulled from the provider the first time it is asked for"""
    season = _parse_season(request.args.get("season"))
    week = _parse_week(request.args.get("week"))

    try:
        week_games = _data_sync().ensure_week(season, week)
    except ProviderError:
        return jsonify({"error": "Failed to fetch games"}), 500

    return jsonify([game.to_dict() for game in week_games])


@bp.route("/picks", methods=["GET"])
@add_no_cache_headers
def user_picks():
    """A user's stored picks for a week"""
    user = (request.args.get("user") or "").strip()
    if not user:
        return jsonify([])

    season = _parse_season(request.args.get("season"))
    week = _parse_week(request.args.get("week"))

    picks = Pick.get_user_picks_for_week(user, season, week)
    return jsonify([pick.to_dict() for pick in picks])


@bp.route("/picks", methods=["POST"])
def submit_picks():
    """Validate and store a user's pick set for a week"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")

    user = data.get("user")
    if not isinstance(user, str) or not user.strip():
        abort(400, description="user is required")
    user = user.strip()

    season = _parse_season(data.get("season"), required=True)
    week = _parse_week(data.get("week"))
    candidates = _parse_candidates(data.get("picks"))

    try:
        week_games = _data_sync().ensure_week(season, week)
    except ProviderError:
        return jsonify({"error": "Failed to fetch games"}), 500

    try:
        stored = Pick.submit_week(user, season, week, candidates, week_games)
    except PickSubmissionError as e:
        logger.info(f"Rejected picks from {user} for {season} week {week}: {e}")
        return jsonify({"error": str(e)}), 400

    invalidate_scoreboards()
    return jsonify({"ok": True, "saved": len(stored)})


@bp.route("/scoreboard")
@cached_route(timeout=300, key_prefix="scoreboard_week")
def scoreboard():
    """Week totals for every user with picks, plus each game's outcome"""
    season = _parse_season(request.args.get("season"), required=True)
    week = _parse_week(request.args.get("week"))

    outcomes = Game.outcome_map(Game.get_games_for_week(season, week))
    entries = [pick.to_entry() for pick in Pick.get_picks_for_week(season, week)]

    payload = _scores_payload(score_week(outcomes, entries))
    payload["outcomes"] = _outcomes_payload(outcomes)
    return payload


@bp.route("/scoreboard-season")
@cached_route(timeout=300, key_prefix="scoreboard_season")
def scoreboard_season():
    """Cumulative totals across every week of a season"""
    season = _parse_season(request.args.get("season"), required=True)

    outcomes = Game.outcome_map(Game.query.filter_by(season=season).all())
    entries_by_week = defaultdict(list)
    for pick in Pick.get_picks_for_season(season):
        entries_by_week[pick.week].append(pick.to_entry())

    scores = score_season(
        (outcomes, entries) for _, entries in sorted(entries_by_week.items())
    )
    return _scores_payload(scores)


@bp.route("/update-results", methods=["POST"])
@limiter.limit("60 per hour")
def update_results():
    """Refetch a week from the provider and re-resolve its outcomes"""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")

    season = _parse_season(data.get("season"), required=True)
    week = _parse_week(data.get("week"))

    try:
        outcomes = _data_sync().update_results(season, week)
    except ProviderError:
        return jsonify({"error": "Failed to update results"}), 500

    invalidate_scoreboards()
    return jsonify({"ok": True, "outcomes": _outcomes_payload(outcomes)})
