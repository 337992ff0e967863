# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Pytest configuration and fixtures for petWalk tests."""
from __future__ import annotations

import socket
from unittest.mock import AsyncMock, MagicMock

import pytest

from petwalk import PetwalkAccessory, PetwalkClient
from petwalk.simulator import DeviceSimulator, DeviceSimulatorState


# ============================================================================
# Mock Device Responses
# ============================================================================

MOCK_STATES_OPEN = {"door": "open", "system": "on"}
MOCK_STATES_CLOSED = {"door": "closed", "system": "on"}

MOCK_MODES = {
    "brightnessSensor": False,
    "motion_in": False,
    "motion_out": True,
    "rfid": False,
    "time": False,
}


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest.fixture
def mock_client() -> MagicMock:
    """A PetwalkClient stand-in whose API calls are AsyncMocks.

    By default the door reports open/on with the default modes, and every
    write is accepted.
    """
    client = MagicMock(spec=PetwalkClient)
    client.host = "192.168.1.50"
    client.port = 8080
    client.base_url = "http://192.168.1.50:8080/"
    client.timeout = 3.0
    client.get_door_status = AsyncMock(return_value=dict(MOCK_STATES_OPEN))
    client.set_door_status = AsyncMock(return_value=None)
    client.get_config = AsyncMock(return_value=dict(MOCK_MODES))
    client.set_config = AsyncMock(return_value=None)
    return client


@pytest.fixture
async def accessory(mock_client) -> PetwalkAccessory:
    """An accessory driven by the mock client, stopped after the test."""
    acc = PetwalkAccessory(mock_client, name="Test Door", poll_interval=0.01)
    yield acc
    await acc.stop()


# ============================================================================
# Simulator Fixtures
# ============================================================================

@pytest.fixture
async def simulator():
    """Create and start a simulator on an ephemeral port."""
    sim = DeviceSimulator(host="127.0.0.1", port=0, state=DeviceSimulatorState())
    await sim.start()
    yield sim
    await sim.stop()


@pytest.fixture
async def sim_client(simulator):
    """A real client pointed at the simulator."""
    client = PetwalkClient("127.0.0.1", simulator.port, timeout=1.0)
    yield client
    await client.close()


@pytest.fixture
def unused_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


# ============================================================================
# Utility Fixtures
# ============================================================================

@pytest.fixture
def snapshot_tracker() -> list:
    """Collect snapshots published by an accessory."""
    return []
