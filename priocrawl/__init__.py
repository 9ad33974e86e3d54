"""priocrawl: a single-session, priority-scheduled web crawler."""

__version__ = "0.1.0"
