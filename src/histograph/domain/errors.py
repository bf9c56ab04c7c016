# Licensed under the Apache License, Version 2.0


class HistographError(Exception):
    """Base exception for domain-specific errors."""


class AnalysisError(HistographError):
    """A single event could not be analysed (unexpected structure)."""


class EventSourceError(HistographError):
    """Unreadable or unparseable event/position input."""


class ConfigurationError(HistographError):
    """Bad CLI args or unusable configuration."""
