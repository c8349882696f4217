"""Task Timer - track time spent on named tasks and task groups."""

__version__ = "0.1.0"
