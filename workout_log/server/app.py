"""
HTTP API of the remote authority.

Routes:
    GET    /health                              liveness and entry count
    GET    /api/exercises?name=&limit=&offset=  entries, newest first
    GET    /api/exercises/names                 names by usage
    GET    /api/exercises/progression/{name}    oldest-first series
    POST   /api/exercises                       single entry (name + weight required)
    POST   /api/sync                            batch of entries from offline clients
    DELETE /api/exercises/{id}                  remove one entry

Example:
    >>> server = ExerciseServer(ExerciseRepository(Path("data/exercises.json")))
    >>> web.run_app(server.create_app(), port=3000)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from ..exceptions import RecordValidationError, StorageIOError
from .repository import ExerciseRepository

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map package exceptions onto JSON error responses."""
    try:
        return await handler(request)
    except RecordValidationError as e:
        return web.json_response({"error": e.reason}, status=400)
    except StorageIOError as e:
        logger.error(f"Storage failure handling {request.method} {request.path}: {e}")
        return web.json_response({"error": "storage unavailable"}, status=500)


class ExerciseServer:
    """Request handlers bound to one repository."""

    def __init__(self, repository: ExerciseRepository) -> None:
        self.repository = repository

    def create_app(self) -> web.Application:
        """Build the aiohttp application."""
        app = web.Application(middlewares=[error_middleware])
        app.router.add_get("/health", self.health)
        app.router.add_get("/api/exercises", self.list_exercises)
        app.router.add_get("/api/exercises/names", self.list_names)
        app.router.add_get("/api/exercises/progression/{name}", self.progression)
        app.router.add_post("/api/exercises", self.add_exercise)
        app.router.add_post("/api/sync", self.sync)
        app.router.add_delete("/api/exercises/{id}", self.delete_exercise)
        return app

    async def health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "entries": await self.repository.count()})

    async def list_exercises(self, request: web.Request) -> web.Response:
        """Entries newest first, optionally filtered and paginated."""
        name = request.query.get("name") or None
        limit = _int_param(request, "limit")
        offset = _int_param(request, "offset") or 0

        entries = await self.repository.list_entries(name=name, limit=limit, offset=offset)
        return web.json_response(entries)

    async def list_names(self, request: web.Request) -> web.Response:
        return web.json_response(await self.repository.names())

    async def progression(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        return web.json_response(await self.repository.progression(name))

    async def add_exercise(self, request: web.Request) -> web.Response:
        """Accept one entry submitted directly (not from the offline queue)."""
        body = await _json_body(request)
        if not isinstance(body, dict):
            raise RecordValidationError("body", "name and weight are required")

        await self.repository.accept_one(body)
        return web.json_response({"success": True})

    async def sync(self, request: web.Request) -> web.Response:
        """Accept a batch of entries from an offline client."""
        body = await _json_body(request)
        entries = body.get("entries") if isinstance(body, dict) else None
        if not isinstance(entries, list):
            raise RecordValidationError("entries", "entries array required")

        ack = await self.repository.accept_batch(entries)
        return web.json_response(ack.to_dict())

    async def delete_exercise(self, request: web.Request) -> web.Response:
        await self.repository.delete(request.match_info["id"])
        return web.json_response({"success": True})


def create_app(repository: ExerciseRepository) -> web.Application:
    """Build the application for a repository."""
    return ExerciseServer(repository).create_app()


async def _json_body(request: web.Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RecordValidationError("body", "invalid JSON") from None


def _int_param(request: web.Request, key: str) -> int | None:
    raw = request.query.get(key)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise RecordValidationError(key, "must be an integer", raw) from None
