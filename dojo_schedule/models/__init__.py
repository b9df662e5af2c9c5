from dojo_schedule.core.database import Base
from .clubs import Club
from .training_days import TrainingDay
from .overrides import TrainingOverride
from .users import Trainer, Admin
from .entries import TrainingEntry
from .assignments import TrainerSchedule, ScheduleException

__all__ = [
    "Base",
    "Club",
    "TrainingDay",
    "TrainingOverride",
    "Trainer",
    "Admin",
    "TrainingEntry",
    "TrainerSchedule",
    "ScheduleException",
]
