"""
Remote authority server.

Durable JSON-backed entry repository plus the aiohttp application that
exposes it to workout log clients.
"""

from .app import ExerciseServer, create_app
from .repository import ExerciseRepository

__all__ = [
    "ExerciseRepository",
    "ExerciseServer",
    "create_app",
]
