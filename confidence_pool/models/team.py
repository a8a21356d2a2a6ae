from datetime import datetime, timezone

from confidence_pool import db


class Team(db.Model):
    __tablename__ = "teams"

    # ESPN team id, stable across seasons
    id = db.Column(db.String(20), primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    abbreviation = db.Column(db.String(10), nullable=False, index=True)
    logo_url = db.Column(db.String(500))

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Team {self.abbreviation}>"

    @staticmethod
    def upsert(team_line):
        """Create or refresh a team from a provider team line"""
        team = db.session.get(Team, team_line.team_id)
        if team is None:
            team = Team(id=team_line.team_id)
            db.session.add(team)

        # Identity never changes; name and logo may be corrected upstream
        team.name = team_line.name
        team.abbreviation = team_line.abbreviation
        team.logo_url = team_line.logo_url
        return team

    def to_dict(self):
        """Convert team to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "logo_url": self.logo_url,
        }
