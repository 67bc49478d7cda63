"""
Domain errors raised by the anomaly management service.
"""


class AnomalyNotFoundError(LookupError):
    """No anomaly exists with the requested id."""


class InvalidTransitionError(ValueError):
    """The requested status change is not allowed from the current status."""
