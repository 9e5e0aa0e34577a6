"""Bitwarden CLI session and record models."""

from .session import Session, SessionState

__all__ = ["Session", "SessionState"]
