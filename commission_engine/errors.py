"""
Domain errors raised by the commission engine.

Each error carries a stable machine-readable code and the HTTP status
the API layer answers with. Handlers are registered in main.py.
"""

from typing import Optional


class EngineError(Exception):
    """Base class for all expected engine failures."""

    code: str = "engine_error"
    status_code: int = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class ValidationError(EngineError):
    """Malformed or out-of-range input (negative amounts, fee rate outside [0, 1])."""

    code = "validation_error"
    status_code = 400


class UnauthorizedError(EngineError):
    """No authenticated session."""

    code = "unauthorized"
    status_code = 401


class ForbiddenError(EngineError):
    """Authenticated but the role is not allowed."""

    code = "forbidden"
    status_code = 403


class NotFoundError(EngineError):
    """Product, prospect, sale or commission absent or outside the tenant."""

    code = "not_found"
    status_code = 404
