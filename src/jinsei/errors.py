"""Domain errors raised by services and translated to HTTP responses in
jinsei.middleware.error_handler."""

from __future__ import annotations


class ValidationError(ValueError):
    """A required field is missing or malformed (e.g. blank name, xp_reward < 1)."""


class NotFoundError(LookupError):
    """The referenced entity does not exist or is not owned by the acting profile."""

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} not found")


class XPAwardError(RuntimeError):
    """The XP award step of an achievement could not be applied.

    The surrounding transaction must be rolled back so the achievement is not
    persisted without its award.
    """
