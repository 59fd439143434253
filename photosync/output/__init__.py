# PhotoSync Output Module
# Rich console output for results and status reports

from photosync.output.console import Console, create_console, recommendations, time_ago

__all__ = [
    "Console",
    "create_console",
    "time_ago",
    "recommendations",
]
