# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for the HomeKit accessories (homekit.py)."""
from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
from pyhap.const import CATEGORY_BRIDGE, CATEGORY_GARAGE_DOOR_OPENER
from pyhap.loader import get_loader

from petwalk import PetwalkAccessory
from petwalk.config import DeviceConfig, parse_config
from petwalk.homekit import PetwalkDoorAccessory, build_bridge, build_door_accessory


@pytest.fixture
def driver() -> MagicMock:
    """An AccessoryDriver stand-in carrying the real service loader."""
    drv = MagicMock()
    drv.loader = get_loader()
    return drv


@pytest.fixture
def door(driver, accessory) -> PetwalkDoorAccessory:
    return PetwalkDoorAccessory(driver, "Back Door", accessory, serial_number="PW-0001")


def _service(acc, name: str, switch_name: str = None):
    for service in acc.services:
        if service.display_name != name:
            continue
        if switch_name is None or service.get_characteristic("Name").value == switch_name:
            return service
    raise AssertionError(f"no {name} service {switch_name or ''}")


# ============================================================================
# Services
# ============================================================================

class TestServices:
    """Tests for the services a door accessory exposes."""

    def test_category(self, door):
        assert door.category == CATEGORY_GARAGE_DOOR_OPENER

    def test_accessory_information(self, door):
        info = _service(door, "AccessoryInformation")
        assert info.get_characteristic("Manufacturer").value == "petWalk"
        assert info.get_characteristic("Model").value == "petWalk"
        assert info.get_characteristic("SerialNumber").value == "PW-0001"

    def test_garage_door_service(self, door):
        service = _service(door, "GarageDoorOpener")
        assert service.get_characteristic("Name").value == "Back Door"
        assert service.get_characteristic("CurrentDoorState") is door.char_current_door
        assert service.get_characteristic("TargetDoorState") is door.char_target_door

    @pytest.mark.parametrize(
        "switch_name,key",
        [
            ("Inbound Entry", "motion_in"),
            ("Outbound Entry", "motion_out"),
            ("RFID Detection", "rfid"),
        ],
    )
    def test_switch_services(self, door, switch_name, key):
        service = _service(door, "Switch", switch_name)
        assert service.get_characteristic("On") is door.switch_chars[key]

    def test_switches_have_distinct_ids(self, door):
        switches = [s for s in door.services if s.display_name == "Switch"]
        assert len(switches) == 3
        assert len({s.unique_id for s in switches}) == 3


# ============================================================================
# Reads
# ============================================================================

class TestReads:
    """Characteristic reads come from the cache."""

    def test_door_getters(self, door, mock_client):
        assert door.char_current_door.getter_callback() == 0
        assert door.char_target_door.getter_callback() == 0
        assert door.char_obstruction.getter_callback() is False
        mock_client.get_door_status.assert_not_called()

    def test_switch_getters(self, door):
        assert door.switch_chars["motion_in"].getter_callback() is False
        assert door.switch_chars["motion_out"].getter_callback() is True
        assert door.switch_chars["rfid"].getter_callback() is False


# ============================================================================
# Writes
# ============================================================================

class TestWrites:
    """Characteristic writes are scheduled on the driver loop."""

    def test_target_door_write(self, door, driver, accessory):
        door.char_target_door.setter_callback(1)
        driver.async_add_job.assert_called_once_with(accessory.set_target_door_state, 1)

    def test_switch_write(self, door, driver, accessory):
        door.switch_chars["rfid"].setter_callback(1)
        driver.async_add_job.assert_called_once_with(
            accessory.config_handlers["rfid"].set, True
        )

    async def test_command_task_held_until_done(self, door, driver, mock_client):
        """A scheduled command stays referenced until it completes."""
        driver.async_add_job.side_effect = (
            lambda target, *args: asyncio.get_running_loop().create_task(target(*args))
        )

        door.char_target_door.setter_callback(1)

        assert len(door._command_tasks) == 1
        task = next(iter(door._command_tasks))
        await task
        await asyncio.sleep(0)
        assert door._command_tasks == set()
        mock_client.set_door_status.assert_awaited_once_with(
            {"door": "close", "system": "on", "lastCallOk": True}
        )


# ============================================================================
# Updates
# ============================================================================

class TestUpdates:
    """Poll results are pushed into the characteristics."""

    async def test_snapshot_updates_characteristics(self, door, accessory, mock_client):
        mock_client.get_door_status.return_value = {"door": "closed", "system": "on"}
        mock_client.get_config.return_value = {
            "brightnessSensor": False,
            "motion_in": True,
            "motion_out": False,
            "rfid": True,
            "time": False,
        }

        await accessory.refresh()

        assert door.char_current_door.value == 1
        assert door.switch_chars["motion_in"].value is True
        assert door.switch_chars["motion_out"].value is False
        assert door.switch_chars["rfid"].value is True

    async def test_run_and_stop(self, door, accessory, mock_client):
        await door.run()
        assert accessory.running
        await door.stop()
        assert not accessory.running


# ============================================================================
# Builders
# ============================================================================

class TestBuilders:
    """Tests for build_door_accessory and build_bridge."""

    def test_build_door_accessory(self, driver):
        device = DeviceConfig(name="Side Door", ip_address="192.168.1.51", port=8081)
        door = build_door_accessory(driver, device, poll_interval=2.0, timeout=1.5)

        assert isinstance(door.petwalk, PetwalkAccessory)
        assert door.display_name == "Side Door"
        assert door.petwalk.poll_interval == 2.0
        assert door.petwalk.client.base_url == "http://192.168.1.51:8081/"
        assert door.petwalk.client.timeout == 1.5

    def test_build_bridge(self, driver):
        config = parse_config({
            "bridge": {"name": "Home Bridge"},
            "devices": [
                {"name": "Back Door", "ip_address": "192.168.1.50"},
                {"name": "Side Door", "ip_address": "192.168.1.51"},
            ],
        })
        bridge = build_bridge(driver, config)

        assert bridge.category == CATEGORY_BRIDGE
        assert bridge.display_name == "Home Bridge"
        names = sorted(acc.display_name for acc in bridge.accessories.values())
        assert names == ["Back Door", "Side Door"]
