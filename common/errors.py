"""Base error type for domain services.

Messages are meant for direct display to the user.
"""


class DomainError(Exception):
    """Raised by service functions when a business rule blocks a mutation."""

    status_code = 400

    def __init__(self, message: str = "", *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message
