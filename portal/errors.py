# portal/errors.py
from __future__ import annotations


class ValidationError(ValueError):
    """Rejected client input; routes answer it with a 400."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
