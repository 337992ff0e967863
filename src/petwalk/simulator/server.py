# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""petWalk door simulator server.

This module contains the DeviceSimulator class that serves the petWalk local
HTTP API with aiohttp.web.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from aiohttp import web

from ..const import (
    CONFIG_FIELDS,
    DEFAULT_PORT,
    DOOR_CLOSED,
    DOOR_CMD_CLOSE,
    DOOR_CMD_OPEN,
    DOOR_OPEN,
    ENDPOINT_MODES,
    ENDPOINT_STATES,
    FIELD_DOOR,
    FIELD_SYSTEM,
    STATUS_ACCEPTED,
    SYSTEM_OFF,
    SYSTEM_ON,
)
from .state import DeviceSimulatorState

logger = logging.getLogger(__name__)

STATES_PATH = f"/{ENDPOINT_STATES}"
MODES_PATH = f"/{ENDPOINT_MODES}"

# Write vocabulary -> read vocabulary
_DOOR_COMMANDS = {
    DOOR_CMD_OPEN: DOOR_OPEN,
    DOOR_CMD_CLOSE: DOOR_CLOSED,
}


class DeviceSimulator:
    """petWalk door simulator server.

    This class simulates a petWalk door's HTTP API. It answers GET/PUT on
    /states and /modes the way the real firmware does, including the
    "close" (write) versus "closed" (read) quirk.

    Example:
        simulator = DeviceSimulator(port=8080)
        await simulator.start()

        # Something at the door changes it
        simulator.set_door("open")

        # Make the next status poll fail
        simulator.fail_next("GET", "/states", 500)

        await simulator.stop()
    """

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = DEFAULT_PORT,
        state: Optional[DeviceSimulatorState] = None,
    ):
        self.host = host
        self.port = port
        self.state = state or DeviceSimulatorState()
        self.requests: list[tuple[str, str, Any]] = []
        self._runner: Optional[web.AppRunner] = None
        self._actuation_tasks: set[asyncio.Task] = set()

    async def start(self):
        """Start the simulator server."""
        app = web.Application()
        app.router.add_get(STATES_PATH, self._handle_get_states)
        app.router.add_put(STATES_PATH, self._handle_put_states)
        app.router.add_get(MODES_PATH, self._handle_get_modes)
        app.router.add_put(MODES_PATH, self._handle_put_modes)

        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()

        # Port 0 binds an ephemeral port; report the real one
        self.port = self._runner.addresses[0][1]
        logger.info(f"petWalk simulator listening on {self.host}:{self.port}")

    async def stop(self):
        """Stop the simulator server."""
        for task in list(self._actuation_tasks):
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._actuation_tasks.clear()

        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            logger.info("petWalk simulator stopped")

    @property
    def base_url(self) -> str:
        """URL clients should use to reach the simulator."""
        host = "127.0.0.1" if self.host == "0.0.0.0" else self.host
        return f"http://{host}:{self.port}/"

    # =========================================================================
    # Device-side controls
    # =========================================================================

    def set_door(self, door: str):
        """Move the door, as if a pet or the local button did it."""
        if door not in (DOOR_OPEN, DOOR_CLOSED):
            raise ValueError(f"Invalid door state: {door}")
        if door != self.state.door:
            logger.info(f"Simulator: door {self.state.door} -> {door}")
        self.state.door = door

    def set_system(self, system: str):
        """Switch the door's motor system on or off."""
        if system not in (SYSTEM_ON, SYSTEM_OFF):
            raise ValueError(f"Invalid system state: {system}")
        if system != self.state.system:
            logger.info(f"Simulator: system {self.state.system} -> {system}")
        self.state.system = system

    def set_mode(self, key: str, value: bool):
        """Change a mode flag on the device side."""
        self.state.set_mode(key, value)
        logger.info(f"Simulator: mode {key} -> {value}")

    def fail_next(self, method: str, path: str, status: int = 500):
        """Answer the next request to ``method path`` with ``status``."""
        self.state.queue_failure(method, path, status)

    def requests_for(self, method: str, path: str) -> list[Any]:
        """Bodies of recorded requests to one route, oldest first."""
        return [
            body for m, p, body in self.requests
            if m == method.upper() and p == path
        ]

    # =========================================================================
    # Request handling
    # =========================================================================

    async def _begin(self, request: web.Request, body: Any = None) -> Optional[web.Response]:
        """Record the request, apply latency, and return a forced failure if queued."""
        self.requests.append((request.method, request.path, body))
        if self.state.timing.latency > 0:
            await asyncio.sleep(self.state.timing.latency)
        status = self.state.pop_failure(request.method, request.path)
        if status is not None:
            logger.info(f"Simulator: forcing {status} for {request.method} {request.path}")
            return web.json_response({"error": "forced failure"}, status=status)
        return None

    async def _read_json(self, request: web.Request) -> tuple[Any, Optional[web.Response]]:
        text = await request.text()
        try:
            body = json.loads(text)
        except ValueError:
            forced = await self._begin(request, text)
            if forced is not None:
                return None, forced
            return None, web.json_response({"error": "invalid JSON"}, status=400)
        forced = await self._begin(request, body)
        if forced is not None:
            return body, forced
        if not isinstance(body, dict):
            return body, web.json_response({"error": "expected an object"}, status=400)
        return body, None

    async def _handle_get_states(self, request: web.Request) -> web.Response:
        forced = await self._begin(request)
        if forced is not None:
            return forced
        return web.json_response(self.state.get_states())

    async def _handle_get_modes(self, request: web.Request) -> web.Response:
        forced = await self._begin(request)
        if forced is not None:
            return forced
        return web.json_response(self.state.get_modes())

    async def _handle_put_states(self, request: web.Request) -> web.Response:
        body, error = await self._read_json(request)
        if error is not None:
            return error

        door_cmd = body.get(FIELD_DOOR)
        if door_cmd not in _DOOR_COMMANDS:
            return web.json_response(
                {"error": f"invalid door command {door_cmd!r}"}, status=400
            )
        system = body.get(FIELD_SYSTEM, self.state.system)
        if system not in (SYSTEM_ON, SYSTEM_OFF):
            return web.json_response(
                {"error": f"invalid system value {system!r}"}, status=400
            )

        self.set_system(system)
        door = _DOOR_COMMANDS[door_cmd]
        delay = self.state.timing.actuation_delay
        if delay > 0:
            task = asyncio.create_task(self._actuate_later(door, delay))
            self._actuation_tasks.add(task)
            task.add_done_callback(self._actuation_tasks.discard)
        else:
            self.set_door(door)
        return web.Response(status=STATUS_ACCEPTED)

    async def _handle_put_modes(self, request: web.Request) -> web.Response:
        body, error = await self._read_json(request)
        if error is not None:
            return error

        for key in CONFIG_FIELDS:
            if key in body and not isinstance(body[key], bool):
                return web.json_response(
                    {"error": f"{key} must be a boolean"}, status=400
                )
        for key in CONFIG_FIELDS:
            if key in body and body[key] != self.state.modes.get(key):
                self.set_mode(key, body[key])
        return web.Response(status=STATUS_ACCEPTED)

    async def _actuate_later(self, door: str, delay: float):
        await asyncio.sleep(delay)
        self.set_door(door)
