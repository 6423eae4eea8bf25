from .scheduler import IntervalScheduler
from .worker import WorkQueue

__all__ = ["IntervalScheduler", "WorkQueue"]
