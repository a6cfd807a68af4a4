"""
Error Types

Invalid snapshot input is rejected with InvalidInputError, a ValueError that
names the offending field so callers can surface it to an operator.
"""

from typing import Any, Optional


class InvalidInputError(ValueError):
    """Raised when a snapshot record or argument fails validation"""

    def __init__(self, field: str, message: str, value: Optional[Any] = None):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {message}")
