"""Error taxonomy and the failure envelope returned by every route."""
import traceback

from fastapi import HTTPException

from . import config


class NotFound(LookupError):
    pass


class DataAccessFailure(RuntimeError):
    """A store error re-raised with a route-specific message prefix."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.code = getattr(cause, "code", None)


class AuthFailure(HTTPException):
    def __init__(self, detail: dict):
        super().__init__(status_code=401, detail=detail)


class NoTokenProvided(AuthFailure):
    def __init__(self):
        super().__init__({
            "message": "No token provided",
            "hint": "Include Bearer token in Authorization header",
            "example": "Authorization: Bearer your-jwt-token-here",
        })


class InvalidToken(AuthFailure):
    def __init__(self, token: str, reason: str):
        super().__init__({
            "message": "Invalid token",
            "error": reason,
            "tokenReceived": token,
            "jwtSecret": config.env("JWT_SECRET"),
            "suggestion": "Try logging in again to get a new token",
        })


class AuthorizationFailure(HTTPException):
    def __init__(self):
        super().__init__(status_code=403, detail={"message": "Forbidden resource", "error": "Forbidden"})


def stack_of(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def failure(exc: Exception, *, always_stack: bool = False, sql_error: bool = False, **extra) -> dict:
    """Build ``{"success": False, "error": ...}`` plus whatever the route adds.

    The traceback is attached in development mode, or unconditionally for
    the routes that always leaked it.
    """
    body = {"success": False, "error": str(exc)}
    if sql_error:
        body["sqlError"] = getattr(exc, "code", None)
    body.update(extra)
    if always_stack or config.is_development():
        body["stack"] = stack_of(exc)
    return body
