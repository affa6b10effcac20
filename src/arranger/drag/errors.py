"""Drag session errors."""


class DragError(Exception):
    """Raised when the drag controller is driven out of order."""


class DragInProgressError(DragError):
    """Raised when a drag starts while another one is still active."""
