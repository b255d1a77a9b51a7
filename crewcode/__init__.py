"""crewcode: social deduction game backend with coding-trivia tasks."""

__version__ = "1.0.0"
