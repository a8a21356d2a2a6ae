from datetime import datetime, timezone

from flask import jsonify

from confidence_pool import limiter
from confidence_pool.routes.main import bp


@bp.route("/health")
@limiter.exempt
def health():
    """Health check endpoint - exempt from rate limiting for monitoring systems"""
    return jsonify(
        {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
    )


@bp.route("/scheduler/status")
def scheduler_status():
    """Background sweep jobs and counters"""
    from confidence_pool.services.scheduler_service import scheduler_service

    status = scheduler_service.get_status()
    last_sync = status["stats"]["last_sync"]
    status["stats"] = dict(
        status["stats"], last_sync=last_sync.isoformat() if last_sync else None
    )
    return jsonify(status)
