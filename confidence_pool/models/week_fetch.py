from datetime import datetime, timezone

from confidence_pool import db


class WeekFetch(db.Model):
    """Last provider fetches per week, used to skip redundant schedule calls"""

    __tablename__ = "week_fetch"

    season = db.Column(db.Integer, primary_key=True)
    week = db.Column(db.Integer, primary_key=True)

    last_schedule_fetch = db.Column(db.DateTime)
    last_results_fetch = db.Column(db.DateTime)

    def __repr__(self):
        return f"<WeekFetch {self.season} Week {self.week}>"

    @staticmethod
    def get(season, week):
        return db.session.get(WeekFetch, (season, week))

    @staticmethod
    def schedule_fetched(season, week):
        marker = WeekFetch.get(season, week)
        return marker is not None and marker.last_schedule_fetch is not None

    @staticmethod
    def mark(season, week, schedule=False, results=False):
        """Stamp the marker for a week; unstamped fields keep their old value"""
        marker = WeekFetch.get(season, week)
        if marker is None:
            marker = WeekFetch(season=season, week=week)
            db.session.add(marker)

        now = datetime.now(timezone.utc)
        if schedule:
            marker.last_schedule_fetch = now
        if results:
            marker.last_results_fetch = now
        return marker

    def to_dict(self):
        return {
            "season": self.season,
            "week": self.week,
            "last_schedule_fetch": (
                self.last_schedule_fetch.isoformat()
                if self.last_schedule_fetch
                else None
            ),
            "last_results_fetch": (
                self.last_results_fetch.isoformat() if self.last_results_fetch else None
            ),
        }
