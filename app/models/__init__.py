"""Database models."""

from app.models.chat import Chat
from app.models.report import Report

__all__ = [
    "Chat",
    "Report",
]
