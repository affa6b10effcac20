"""Upload errors."""


class UploadError(Exception):
    """Raised by uploaders when a dropped file could not be stored."""
