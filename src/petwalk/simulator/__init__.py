# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""petWalk door simulator submodule.

This module provides a simulated petWalk door that serves the same local HTTP
API as the real device. Useful for testing the bridge without real hardware.

The simulator can:
- Answer GET/PUT on /states and /modes
- Reject the read vocabulary ("closed") on write, like the firmware does
- Move the door from the device side (a pet walking through)
- Delay responses and door movement
- Answer the next request to a route with a forced error status

Example usage:
    # Run standalone
    python -m petwalk.simulator --port 8080

    # Or use programmatically
    from petwalk.simulator import DeviceSimulator
    simulator = DeviceSimulator(port=0)
    await simulator.start()
"""

from .state import DeviceSimulatorState, DeviceTimingConfig
from .server import DeviceSimulator, MODES_PATH, STATES_PATH
from .cli import run_simulator, main

__all__ = [
    # Main classes
    "DeviceSimulator",
    "DeviceSimulatorState",
    "DeviceTimingConfig",
    # Routes
    "STATES_PATH",
    "MODES_PATH",
    # CLI
    "run_simulator",
    "main",
]
