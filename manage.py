#!/usr/bin/env python3
"""
Confidence Pool Management CLI

Command-line access to the provider sync, the results sweep and scoreboards.
"""

import logging
import os

# The CLI drives syncs itself; never start the background sweep from here
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import click  # noqa: E402
from flask.cli import with_appcontext  # noqa: E402
from sqlalchemy import text  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from confidence_pool import create_app, db  # noqa: E402
from confidence_pool.models import Game, Pick, Team, WeekFetch  # noqa: E402
from confidence_pool.services.scheduler_service import scheduler_service  # noqa: E402
from confidence_pool.utils.data_sync import ProviderError  # noqa: E402
from confidence_pool.utils.scoring import rank_scores, score_week  # noqa: E402

app = create_app()


def _data_sync():
    return app.extensions["data_sync"]


def _echo_ranking(scores):
    if not scores:
        click.echo("No picks found.")
        return
    for position, (user, score) in enumerate(rank_scores(scores), start=1):
        click.echo(f"  {position:>2}. {user:<20} {score:>4}")


@click.group()
def cli():
    """Confidence Pool Management CLI"""
    pass


# Database Commands
@cli.group("db")
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command("init")
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


# Data Sync Commands
@cli.group()
def sync():
    """Provider synchronization commands"""
    pass


@sync.command()
@click.argument("season", type=int)
@click.argument("week", type=int)
@with_appcontext
def week(season, week):
    """Fetch and store the schedule for one week"""
    try:
        games = _data_sync().sync_week(season, week)
        click.echo(f"✅ Synced {len(games)} games for {season} week {week}")
    except ProviderError as e:
        click.echo(f"❌ Provider error: {e}")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database error: {e}")
        logging.error(f"Week sync failed - SQL error: {e}")


@sync.command()
@click.argument("season", type=int)
@click.argument("week", type=int)
@with_appcontext
def results(season, week):
    """Refetch one week and re-resolve its outcomes"""
    try:
        outcomes = _data_sync().update_results(season, week)
    except ProviderError as e:
        click.echo(f"❌ Provider error: {e}")
        return

    for game_id, outcome in outcomes.items():
        click.echo(f"  {game_id}: {outcome.value}")
    click.echo(f"✅ Updated {len(outcomes)} games for {season} week {week}")


@sync.command()
@click.option("--season", type=int, help="Season year (default: current season)")
@with_appcontext
def sweep(season):
    """Run the background results sweep once"""
    results = scheduler_service.run_sweep(season)
    failed = [week for week, ok in results.items() if not ok]

    if failed:
        click.echo(f"⚠️  Sweep finished, skipped weeks: {', '.join(map(str, failed))}")
    else:
        click.echo(f"✅ Sweep refreshed all {len(results)} weeks")


# Scoreboard Commands
@cli.group()
def scores():
    """Scoreboard commands"""
    pass


@scores.command("week")
@click.argument("season", type=int)
@click.argument("week", type=int)
@with_appcontext
def scores_week(season, week):
    """Print the ranked scoreboard for one week"""
    outcomes = Game.outcome_map(Game.get_games_for_week(season, week))
    entries = [pick.to_entry() for pick in Pick.get_picks_for_week(season, week)]

    click.echo(f"Scoreboard {season} week {week}:")
    _echo_ranking(score_week(outcomes, entries))


@scores.command("season")
@click.argument("season", type=int)
@with_appcontext
def scores_season(season):
    """Print cumulative season totals"""
    click.echo(f"Season {season}:")
    _echo_ranking(Pick.season_totals(season))


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏈 Confidence Pool Status")
    click.echo("=" * 40)

    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    click.echo(f"🏈 Teams: {Team.query.count()}")
    final_count = Game.query.filter_by(status="final").count()
    click.echo(f"🏈 Games: {final_count}/{Game.query.count()} final")
    click.echo(f"📝 Picks: {Pick.query.count()}")

    markers = WeekFetch.query.order_by(WeekFetch.season, WeekFetch.week).all()
    for marker in markers:
        data = marker.to_dict()
        click.echo(
            f"  {marker.season} week {marker.week}: "
            f"schedule {data['last_schedule_fetch'] or '-'}, "
            f"results {data['last_results_fetch'] or '-'}"
        )


if __name__ == "__main__":
    with app.app_context():
        cli()
