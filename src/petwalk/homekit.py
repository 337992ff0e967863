# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""HomeKit accessories for petWalk doors, built on HAP-python.

Each door becomes one accessory with a GarageDoorOpener service and three
Switch services (inbound motion, outbound motion, RFID). Characteristic reads
are served from the accessory's cache; writes are scheduled as reconciler
coroutines on the driver's event loop.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp
from pyhap.accessory import Accessory, Bridge
from pyhap.const import CATEGORY_BRIDGE, CATEGORY_GARAGE_DOOR_OPENER

from .accessory import PetwalkAccessory
from .client import PetwalkClient
from .config import DeviceConfig, PetwalkConfig
from .const import CONFIG_SWITCHES, MANUFACTURER, MODEL
from .projection import AccessorySnapshot

logger = logging.getLogger(__name__)


class PetwalkDoorAccessory(Accessory):
    """HomeKit face of one petWalk door."""

    category = CATEGORY_GARAGE_DOOR_OPENER

    def __init__(
        self,
        driver,
        display_name: str,
        petwalk: PetwalkAccessory,
        *,
        serial_number: Optional[str] = None,
        aid: Optional[int] = None,
    ):
        super().__init__(driver, display_name, aid=aid)
        self.petwalk = petwalk
        self._command_tasks: set[asyncio.Task] = set()
        self.set_info_service(
            manufacturer=MANUFACTURER,
            model=MODEL,
            serial_number=serial_number,
        )

        door_service = self.add_preload_service("GarageDoorOpener", chars=["Name"])
        door_service.configure_char("Name", value=display_name)
        self.char_current_door = door_service.configure_char(
            "CurrentDoorState",
            getter_callback=petwalk.get_current_door_state,
        )
        self.char_target_door = door_service.configure_char(
            "TargetDoorState",
            getter_callback=petwalk.get_target_door_state,
            setter_callback=self._set_target_door_state,
        )
        self.char_obstruction = door_service.configure_char(
            "ObstructionDetected",
            getter_callback=petwalk.get_obstruction_detected,
        )

        # Several Switch services on one accessory need distinct unique ids
        self.switch_chars = {}
        for switch_name, key, suffix in CONFIG_SWITCHES:
            handler = petwalk.config_handlers[key]
            service = self.add_preload_service(
                "Switch", chars=["Name"], unique_id=f"{display_name}-{suffix}"
            )
            service.configure_char("Name", value=switch_name)
            self.switch_chars[key] = service.configure_char(
                "On",
                getter_callback=handler.get,
                setter_callback=self._config_setter(key),
            )

        petwalk.add_listener(self._on_snapshot)

    def _set_target_door_state(self, value) -> None:
        logger.info(f"{self.display_name}: handleTargetDoorStateSet {value}")
        self._track(self.driver.async_add_job(self.petwalk.set_target_door_state, value))

    def _config_setter(self, key: str):
        handler = self.petwalk.config_handlers[key]

        def setter(value) -> None:
            self._track(self.driver.async_add_job(handler.set, bool(value)))

        return setter

    def _track(self, task) -> None:
        """Hold a reference to a scheduled command until it finishes."""
        self._command_tasks.add(task)
        task.add_done_callback(self._command_tasks.discard)

    def _on_snapshot(self, snapshot: AccessorySnapshot) -> None:
        """Push a fresh poll result into the characteristics."""
        self.char_current_door.set_value(snapshot.current_door_state)
        for key, char in self.switch_chars.items():
            char.set_value(getattr(snapshot, key))

    async def run(self) -> None:
        """Start polling the door once the driver is up."""
        await self.petwalk.start()

    async def stop(self) -> None:
        """Stop polling the door."""
        await self.petwalk.stop()


class PetwalkBridge(Bridge):
    """Bridge holding one accessory per configured door."""

    category = CATEGORY_BRIDGE


def build_door_accessory(
    driver,
    device: DeviceConfig,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    poll_interval: float,
    timeout: float,
) -> PetwalkDoorAccessory:
    """Create the client, cache and HomeKit accessory for one door."""
    client = PetwalkClient(
        device.ip_address, device.port, session=session, timeout=timeout
    )
    petwalk = PetwalkAccessory(client, name=device.name, poll_interval=poll_interval)
    return PetwalkDoorAccessory(
        driver, device.name, petwalk, serial_number=device.serial_number
    )


def build_bridge(
    driver,
    config: PetwalkConfig,
    *,
    session: Optional[aiohttp.ClientSession] = None,
) -> PetwalkBridge:
    """Create a bridge with an accessory for every configured door."""
    bridge = PetwalkBridge(driver, config.bridge.name)
    bridge.set_info_service(manufacturer=MANUFACTURER, model=MODEL)
    for device in config.devices:
        bridge.add_accessory(
            build_door_accessory(
                driver,
                device,
                session=session,
                poll_interval=config.poll_interval,
                timeout=config.timeout,
            )
        )
    return bridge
