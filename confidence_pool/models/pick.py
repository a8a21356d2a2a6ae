import logging
from datetime import datetime, timezone

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from confidence_pool import db
from confidence_pool.utils.scoring import MAX_CONFIDENCE, PickEntry, Side
from confidence_pool.utils.validation import (
    DUPLICATE_CONFIDENCE_MESSAGE,
    validate_picks,
)

logger = logging.getLogger(__name__)

# Overwritten rows are moved above the legal range before their new values
# land, so swapping two confidences in one submission never collides mid-flush
PARKING_OFFSET = MAX_CONFIDENCE * 10


class PickSubmissionError(Exception):
    """A pick set was rejected; the message is safe to show to the user"""


class Pick(db.Model):
    __tablename__ = "picks"

    # One pick per user per game
    user = db.Column(db.String(80), primary_key=True)
    game_id = db.Column(db.String(50), db.ForeignKey("games.id"), primary_key=True)

    # Denormalized from the game
    season = db.Column(db.Integer, nullable=False)
    week = db.Column(db.Integer, nullable=False)

    # Pick details
    picked_team_id = db.Column(db.String(20), db.ForeignKey("teams.id"), nullable=False)
    confidence = db.Column(db.Integer, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    game = db.relationship("Game", lazy="joined")
    picked_team = db.relationship("Team", foreign_keys=[picked_team_id])

    # Constraints and indexes
    __table_args__ = (
        # Second line of defense behind validate_picks() for racing writers
        db.UniqueConstraint(
            "user", "season", "week", "confidence", name="uniq_picks_user_week_conf"
        ),
        db.CheckConstraint("confidence > 0", name="positive_confidence"),
        db.Index("idx_pick_season_week", "season", "week"),
    )

    def __repr__(self):
        return f"<Pick user={self.user} game_id={self.game_id} confidence={self.confidence}>"

    @property
    def side(self):
        """Side of the game the picked team plays on"""
        return self.game.side_for_team(self.picked_team_id) if self.game else None

    def to_entry(self):
        return PickEntry(self.user, self.game_id, self.side, self.confidence)

    @staticmethod
    def get_user_picks_for_week(user, season, week):
        return (
            Pick.query.filter_by(user=user, season=season, week=week)
            .order_by(Pick.confidence.desc())
            .all()
        )

    @staticmethod
    def get_picks_for_week(season, week):
        return Pick.query.filter_by(season=season, week=week).all()

    @staticmethod
    def get_picks_for_season(season):
        return Pick.query.filter_by(season=season).all()

    @staticmethod
    def season_totals(season):
        """
        Cumulative credited confidence per user for a season.

        A pick is credited when its team is the stored winner; the winner is
        only set for final, untied games, so nothing else counts.

        Returns:
            dict: user -> int, including users whose total is zero
        """
        from .game import Game

        credited = case(
            (Pick.picked_team_id == Game.winner_team_id, Pick.confidence), else_=0
        )
        rows = (
            db.session.query(Pick.user, func.coalesce(func.sum(credited), 0))
            .join(Game, Pick.game_id == Game.id)
            .filter(Pick.season == season)
            .group_by(Pick.user)
            .all()
        )
        return {user: int(total) for user, total in rows}

    @staticmethod
    def submit_week(user, season, week, candidates, games):
        """
        Validate and store one user's pick set for a week as a single unit.

        Picks for games not in ``candidates`` are left alone; picks for games
        in it are overwritten. Either every row lands or none does.

        Args:
            user: free-text user identifier
            season: season year
            week: week number
            candidates: list of PickCandidate
            games: every Game of that week

        Returns:
            list: the stored Pick rows for the submitted games

        Raises:
            PickSubmissionError: validation failed or a stored pick already
                uses one of the submitted confidence values
        """
        is_valid, message = validate_picks(candidates, [game.id for game in games])
        if not is_valid:
            raise PickSubmissionError(message)

        games_by_id = {game.id: game for game in games}
        existing = {
            pick.game_id: pick
            for pick in Pick.query.filter(
                Pick.user == user,
                Pick.game_id.in_(list(games_by_id)),
            ).all()
        }

        submitted_ids = {candidate.game_id for candidate in candidates}

        try:
            for pick in existing.values():
                if pick.game_id in submitted_ids:
                    pick.confidence += PARKING_OFFSET
            db.session.flush()

            stored = []
            for candidate in candidates:
                game = games_by_id[candidate.game_id]
                pick = existing.get(candidate.game_id)
                if pick is None:
                    pick = Pick(user=user, game_id=game.id)
                    db.session.add(pick)

                pick.season = season
                pick.week = week
                pick.picked_team_id = game.team_id_for_side(Side(candidate.side))
                pick.confidence = candidate.confidence
                stored.append(pick)

            db.session.flush()
            db.session.commit()

        except IntegrityError as e:
            db.session.rollback()
            logger.info(f"Pick submission for {user} week {week} collided: {e.orig}")
            raise PickSubmissionError(DUPLICATE_CONFIDENCE_MESSAGE) from e

        logger.info(f"Stored {len(stored)} picks for {user} ({season} week {week})")
        return stored

    def to_dict(self):
        """Convert pick to dictionary for API responses"""
        side = self.side
        return {
            "user": self.user,
            "game_id": self.game_id,
            "season": self.season,
            "week": self.week,
            "side": side.value if side else None,
            "picked_team_id": self.picked_team_id,
            "confidence": self.confidence,
        }
