"""
Local (on-device) storage.

Provides the durable record store the rest of the package reads from
and writes to without network access.
"""

from .store import LocalStore

__all__ = ["LocalStore"]
