"""travelsphere: flight and hotel booking orchestration."""

__version__ = "1.0.0"
