# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""State synchronization for one petWalk door.

``PetwalkAccessory`` keeps a ``StateStore`` in step with the door: a poll loop
pulls the door's state and modes on a fixed period, and the reconciler pushes
a user's requested change to the door and fetches again to confirm it.

Example usage:
    from petwalk import DoorPosition, PetwalkAccessory, PetwalkClient

    async def main():
        accessory = PetwalkAccessory(PetwalkClient("192.168.1.50"), name="Pet Door")
        accessory.add_listener(lambda snapshot: print(snapshot))
        await accessory.start()

        await accessory.set_target_door_state(DoorPosition.CLOSED)
        await accessory.config_handlers["rfid"].set(True)

        await accessory.stop()

Network failures never propagate out of this module. They flip the affected
record's ``last_call_ok`` flag and are logged; the next poll is the only
recovery.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from .client import PetwalkClient
from .const import CONFIG_FIELDS, CONFIG_SWITCHES, DEFAULT_POLL_INTERVAL
from .exceptions import PetwalkError
from .projection import (
    AccessorySnapshot,
    DoorSelector,
    project_config_flag,
    project_door_state,
    project_obstruction_detected,
    project_snapshot,
    project_target_door_state,
    target_from_characteristic,
)
from .state import ConfigState, DoorState, StateStore

logger = logging.getLogger(__name__)


class ConfigAttributeHandler:
    """Get/set handler for one config flag, bound to its accessory."""

    def __init__(self, accessory: "PetwalkAccessory", key: str):
        self._accessory = accessory
        self.key = key

    def get(self) -> bool:
        """Cached value; never touches the network."""
        return self._accessory.get_config_attribute(self.key)

    async def set(self, value: bool) -> None:
        """Write the flag to the door and confirm it."""
        await self._accessory.set_config_attribute(self.key, value)


class PetwalkAccessory:
    """Cached, self-refreshing view of one petWalk door.

    The poll loop owns ``store.current`` and ``store.config`` on fetch; the
    reconciler owns ``store.target`` and ``store.config`` on write. Every
    update replaces a whole record.
    """

    def __init__(
        self,
        client: PetwalkClient,
        *,
        name: str = "petWalk",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        tick_timeout: Optional[float] = None,
    ):
        """Initialize PetwalkAccessory.

        Args:
            client: Client for the door this accessory mirrors.
            name: Display name, used as the log prefix.
            poll_interval: Seconds from the start of one poll to the next.
            tick_timeout: Seconds one poll may take before its requests are
                abandoned. Defaults to twice the client's timeout.
        """
        self._client = client
        self._name = name
        self._poll_interval = poll_interval
        self._tick_timeout = tick_timeout

        self.store = StateStore()
        self.config_handlers = {
            key: ConfigAttributeHandler(self, key) for _, key, _ in CONFIG_SWITCHES
        }

        self._listeners: list[Callable[[AccessorySnapshot], None]] = []
        self._poll_task: Optional[asyncio.Task] = None
        self._running = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        """Display name of the door."""
        return self._name

    @property
    def client(self) -> PetwalkClient:
        """The HTTP client this accessory drives."""
        return self._client

    @property
    def poll_interval(self) -> float:
        """Seconds between poll starts."""
        return self._poll_interval

    @property
    def running(self) -> bool:
        """Whether the poll loop is active."""
        return self._running

    @property
    def current(self) -> DoorState:
        """Door state last confirmed by the device."""
        return self.store.current

    @property
    def target(self) -> DoorState:
        """Door state last requested by the user."""
        return self.store.target

    @property
    def config(self) -> ConfigState:
        """Cached feature toggles."""
        return self.store.config

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, callback: Callable[[AccessorySnapshot], None]) -> None:
        """Register a callback invoked with a snapshot after every poll."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[AccessorySnapshot], None]) -> None:
        """Unregister a snapshot callback."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _publish(self, snapshot: AccessorySnapshot) -> None:
        for callback in self._listeners:
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"{self._name}: error in snapshot listener")

    # =========================================================================
    # Poll loop
    # =========================================================================

    async def start(self) -> None:
        """Start polling the door."""
        if self._running:
            return
        self._running = True
        self._poll_task = asyncio.create_task(
            self._poll_loop(), name=f"petwalk-poll-{self._name}"
        )
        logger.info(f"{self._name}: polling {self._client.base_url} every {self._poll_interval}s")

    async def stop(self) -> None:
        """Stop polling and wait for the loop to exit."""
        self._running = False
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

    async def _poll_loop(self) -> None:
        """Poll, then sleep out the rest of the period; polls never overlap."""
        loop = asyncio.get_running_loop()
        while self._running:
            started = loop.time()
            try:
                await self.refresh()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"{self._name}: error in poll loop: {e}")
            delay = max(0.0, self._poll_interval - (loop.time() - started))
            await asyncio.sleep(delay)

    async def refresh(self) -> AccessorySnapshot:
        """Fetch door status and modes concurrently, then publish a snapshot.

        The snapshot is published even when both fetches fail, so listeners
        always see the last known values along with their freshness.
        """
        tick_timeout = self._tick_timeout
        if tick_timeout is None:
            tick_timeout = self._client.timeout * 2
        try:
            await asyncio.wait_for(
                asyncio.gather(self.refresh_door_status(), self.refresh_config()),
                timeout=tick_timeout,
            )
        except asyncio.TimeoutError:
            self.store.current = self.store.current.stale()
            self.store.config = self.store.config.stale()
            logger.warning(f"{self._name}: poll did not finish within {tick_timeout}s")

        snapshot = project_snapshot(self.store)
        self._publish(snapshot)
        return snapshot

    async def refresh_door_status(self) -> None:
        """GET /states and fold the result into ``store.current``."""
        try:
            fresh = DoorState.from_device(await self._client.get_door_status())
        except PetwalkError as err:
            self.store.current = self.store.current.stale()
            logger.warning(f"{self._name}: door status refresh failed: {err}")
            return

        cached = self.store.current
        if fresh.door != cached.door:
            logger.info(
                f"{self._name}: Door status changed from {cached.door.value} to {fresh.door.value}"
            )
        if fresh.system != cached.system:
            logger.info(
                f"{self._name}: System status changed from {cached.system.value} to {fresh.system.value}"
            )
        self.store.current = fresh

    async def refresh_config(self) -> None:
        """GET /modes and fold the result into ``store.config``."""
        try:
            data = await self._client.get_config()
            fresh = self.store.config.merge_device(data)
        except PetwalkError as err:
            self.store.config = self.store.config.stale()
            logger.warning(f"{self._name}: config refresh failed: {err}")
            return

        for key, old, new in self.store.config.diff(fresh):
            logger.info(f"{self._name}: {key} config changed from {old} to {new}")
        unknown = [key for key in data if key not in CONFIG_FIELDS]
        if unknown:
            logger.debug(f"{self._name}: ignoring unknown config fields {unknown}")
        self.store.config = fresh

    # =========================================================================
    # Door reconciler
    # =========================================================================

    def get_current_door_state(self) -> int:
        """CurrentDoorState characteristic value."""
        logger.debug(f"{self._name}: Triggered GET CurrentDoorState")
        return project_door_state(self.store, DoorSelector.CURRENT)

    def get_target_door_state(self) -> int:
        """TargetDoorState characteristic value."""
        logger.debug(f"{self._name}: Triggered GET TargetDoorState")
        return project_target_door_state(self.store)

    def get_obstruction_detected(self) -> bool:
        """ObstructionDetected characteristic value."""
        logger.debug(f"{self._name}: Triggered GET ObstructionDetected")
        return project_obstruction_detected()

    async def set_target_door_state(self, value: Any) -> None:
        """Record a requested door position and push it to the door.

        Args:
            value: A TargetDoorState value (0 open, 1 closed) or a
                ``DoorPosition``. Anything else is ignored.
        """
        position = target_from_characteristic(value)
        if position is None:
            logger.debug(f"{self._name}: Triggered SET TargetDoorState: UNKNOWN ({value!r})")
            return
        logger.debug(f"{self._name}: Triggered SET TargetDoorState: {position.name}")
        self.store.target = replace(self.store.target, door=position)
        await self.update_door_status()

    async def update_door_status(self) -> None:
        """Write the target door position if it differs from the current one.

        On 202 the door status is fetched again; the write alone does not
        change ``store.current``.
        """
        target = self.store.target
        current = self.store.current
        if target.door == current.door:
            return

        logger.info(
            f"{self._name}: Updating door status from {current.door.value} to {target.door.value}"
        )
        try:
            await self._client.set_door_status(target.to_device())
        except PetwalkError as err:
            self.store.target = self.store.target.stale()
            logger.warning(f"{self._name}: door status change failed: {err}")
            return

        self.store.target = replace(self.store.target, last_call_ok=True)
        logger.info(f"{self._name}: Requested door status change to {target.door.value}")
        await self.refresh_door_status()

    # =========================================================================
    # Config reconciler
    # =========================================================================

    def get_config_attribute(self, key: str) -> bool:
        """Cached value of a config flag."""
        logger.debug(f"{self._name}: Triggered GET ConfigAttribute {key}")
        return project_config_flag(self.store, key)

    async def set_config_attribute(self, key: str, value: bool) -> None:
        """Set one config flag locally, then write the full mode mapping."""
        logger.debug(f"{self._name}: Triggered SET ConfigAttribute {key}, Value: {value}")
        self.store.config = self.store.config.replace_flag(key, value)
        await self.update_config()

    async def update_config(self) -> None:
        """PUT every config flag; the door has no partial update.

        A failed write leaves the locally set value in the cache until the
        next poll replaces it.
        """
        try:
            await self._client.set_config(self.store.config.to_device())
        except PetwalkError as err:
            self.store.config = self.store.config.stale()
            logger.warning(f"{self._name}: config change failed: {err}")
            return

        self.store.config = replace(self.store.config, last_call_ok=True)
        logger.info(f"{self._name}: Requested config change complete")
        await self.refresh_config()
