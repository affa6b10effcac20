"""Reorganization errors."""


class ReorganizationError(Exception):
    """Base exception for reorganization failures."""


class ReorganizationRequestError(ReorganizationError):
    """Raised when the reorganization endpoint fails or returns an unusable payload."""


class ReorganizationApplyError(ReorganizationError):
    """Raised when a reorganization step cannot be applied."""
