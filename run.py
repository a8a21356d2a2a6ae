from confidence_pool import create_app, db
from confidence_pool.models import Game, Pick, Team, WeekFetch

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "Game": Game,
        "Pick": Pick,
        "Team": Team,
        "WeekFetch": WeekFetch,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(app.config.get("PORT", 3000)), debug=app.debug)
