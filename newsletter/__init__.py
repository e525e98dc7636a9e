"""School newsletter article visibility and revision-control engine."""

__version__ = "1.0.0"
