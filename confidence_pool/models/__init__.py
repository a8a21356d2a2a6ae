from confidence_pool import db  # noqa: F401 - imported for model imports

from .game import Game
from .pick import Pick, PickSubmissionError
from .team import Team
from .week_fetch import WeekFetch

__all__ = [
    "Team",
    "Game",
    "Pick",
    "PickSubmissionError",
    "WeekFetch",
]
