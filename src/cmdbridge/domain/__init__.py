"""Domain models for cmdbridge."""

from cmdbridge.domain.models import CommandSpec, SessionResult

__all__ = ["CommandSpec", "SessionResult"]
