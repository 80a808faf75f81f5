"""Custom exceptions for the dashboard package."""


class DashboardError(Exception):
    """Base exception for dashboard package errors."""
    pass


class DataError(DashboardError):
    """Raised when data is missing, invalid, or cannot be fetched."""
    pass


class CacheError(DashboardError):
    """Raised when caching operations fail."""
    pass


class InvalidArgumentError(DashboardError, ValueError):
    """Raised when a transform is called outside its input contract."""
    pass
