from datetime import datetime, timezone

from sqlalchemy.orm import joinedload

from confidence_pool import db
from confidence_pool.utils.scoring import GameStatus, Side, resolve_outcome


class Game(db.Model):
    __tablename__ = "games"

    # ESPN event id, stable across refreshes
    id = db.Column(db.String(50), primary_key=True)

    season = db.Column(db.Integer, nullable=False)
    week = db.Column(db.Integer, nullable=False)

    # Teams
    home_team_id = db.Column(db.String(20), db.ForeignKey("teams.id"), nullable=False)
    away_team_id = db.Column(db.String(20), db.ForeignKey("teams.id"), nullable=False)

    # Game timing (UTC)
    kickoff = db.Column(db.DateTime, nullable=False)

    # Scores and status
    status = db.Column(db.String(20), nullable=False, default=GameStatus.SCHEDULED.value)
    home_score = db.Column(db.Integer, nullable=False, default=0)
    away_score = db.Column(db.Integer, nullable=False, default=0)

    # Set only when final and not tied
    winner_team_id = db.Column(db.String(20), db.ForeignKey("teams.id"))

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    home_team = db.relationship("Team", foreign_keys=[home_team_id], lazy="joined")
    away_team = db.relationship("Team", foreign_keys=[away_team_id], lazy="joined")

    # Indexes
    __table_args__ = (
        db.Index("idx_game_season_week", "season", "week"),
        db.CheckConstraint("home_team_id != away_team_id", name="different_teams"),
        db.CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'final')", name="valid_status"
        ),
        db.CheckConstraint(
            "home_score >= 0 AND away_score >= 0", name="non_negative_scores"
        ),
    )

    def __repr__(self):
        return f"<Game {self.id} {self.season} Week {self.week}>"

    @property
    def outcome(self):
        """Resolved outcome from the stored scores and status"""
        return resolve_outcome(self.status, self.home_score, self.away_score)

    @property
    def kickoff_utc(self):
        # SQLite hands back naive datetimes; they are stored as UTC
        if self.kickoff is not None and self.kickoff.tzinfo is None:
            return self.kickoff.replace(tzinfo=timezone.utc)
        return self.kickoff

    def team_id_for_side(self, side):
        return self.home_team_id if Side(side) is Side.HOME else self.away_team_id

    def side_for_team(self, team_id):
        if team_id == self.home_team_id:
            return Side.HOME
        if team_id == self.away_team_id:
            return Side.AWAY
        return None

    def apply_result(self, status, home_score, away_score):
        """Store status and scores, then re-derive the winner from them"""
        self.status = GameStatus(status).value
        self.home_score = home_score if home_score is not None else 0
        self.away_score = away_score if away_score is not None else 0

        winning_side = resolve_outcome(
            self.status, self.home_score, self.away_score
        ).winning_side
        self.winner_team_id = (
            self.team_id_for_side(winning_side) if winning_side else None
        )

    @staticmethod
    def upsert(scheduled_game, season, week):
        """Create or refresh a game from a provider record (teams first)"""
        from .team import Team

        home_team = Team.upsert(scheduled_game.home)
        away_team = Team.upsert(scheduled_game.away)

        game = db.session.get(Game, scheduled_game.id)
        if game is None:
            game = Game(id=scheduled_game.id)
            db.session.add(game)

        game.season = season
        game.week = week
        game.kickoff = scheduled_game.kickoff.astimezone(timezone.utc).replace(
            tzinfo=None
        )
        game.home_team_id = home_team.id
        game.away_team_id = away_team.id
        game.apply_result(
            scheduled_game.status,
            scheduled_game.home.score,
            scheduled_game.away.score,
        )
        return game

    @staticmethod
    def get_games_for_week(season, week):
        """Get all games for a specific week with eager loading"""
        return (
            Game.query.filter_by(season=season, week=week)
            .options(joinedload(Game.home_team), joinedload(Game.away_team))
            .order_by(Game.kickoff, Game.id)
            .all()
        )

    @staticmethod
    def outcome_map(games):
        """Map game id to Outcome for a list of games"""
        return {game.id: game.outcome for game in games}

    def to_dict(self):
        """Convert game to dictionary for API responses"""
        kickoff = self.kickoff_utc
        return {
            "id": self.id,
            "season": self.season,
            "week": self.week,
            "kickoff": kickoff.isoformat() if kickoff else None,
            "status": self.status,
            "home": self._side_dict(self.home_team, self.home_score),
            "away": self._side_dict(self.away_team, self.away_score),
            "winner_team_id": self.winner_team_id,
            "outcome": self.outcome.value,
        }

    @staticmethod
    def _side_dict(team, score):
        data = team.to_dict() if team else {}
        data["score"] = score
        return data
