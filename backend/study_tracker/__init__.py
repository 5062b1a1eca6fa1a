"""Study Tracker backend: study session lifecycle and productivity analytics."""

__version__ = "0.1.0"
