from __future__ import annotations

from typing import Any, Optional


ERROR_CODES = {
    "NullKeyError": "CACHE-001",
    "InvalidArgumentError": "CACHE-002",
}


class CacheError(Exception):
    """Base class for errors raised by the cache surface."""

    def __init__(self, message: str, *, argument: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.argument = argument

    @property
    def error_code(self) -> str:
        return ERROR_CODES.get(type(self).__name__, "CACHE-000")

    def to_dict(self) -> dict:
        return {
            "code": self.error_code,
            "message": self.message,
            "argument": self.argument,
        }


class NullKeyError(CacheError, ValueError):
    """A key was ``None`` where a concrete key is required."""


class InvalidArgumentError(CacheError, ValueError):
    """A required argument was missing or out of range."""


def require_key(key: Any, name: str = "key") -> Any:
    if key is None:
        raise NullKeyError(f"{name} must not be None.", argument=name)
    return key


def require_argument(value: Any, name: str) -> Any:
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None.", argument=name)
    return value
