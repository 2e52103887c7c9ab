from __future__ import annotations


class DashboardError(Exception):
    """Base class for failures raised while loading or processing the dashboard config."""


class FetchError(DashboardError):
    """Raised when the config document cannot be fetched (transport or HTTP status failure)."""


class ConfigValidationError(DashboardError):
    """Raised when the config document does not match the expected shape."""


class TransformError(DashboardError):
    """Raised when decorating a validated config fails unexpectedly."""
