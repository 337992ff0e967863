# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""CLI for the petWalk door simulator."""

import asyncio
import logging
import signal
from typing import Optional

from ..const import DEFAULT_PORT, DOOR_CLOSED, DOOR_OPEN, SYSTEM_OFF, SYSTEM_ON
from .server import DeviceSimulator
from .state import DeviceSimulatorState, DeviceTimingConfig

logger = logging.getLogger(__name__)


async def run_simulator(
    host: str = "0.0.0.0",
    port: int = DEFAULT_PORT,
    state: Optional[DeviceSimulatorState] = None,
    run_for: Optional[float] = None,
):
    """Run the simulator until interrupted or ``run_for`` seconds pass."""
    simulator = DeviceSimulator(host=host, port=port, state=state)
    await simulator.start()

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass

    try:
        if run_for is not None:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=run_for)
            except asyncio.TimeoutError:
                logger.info(f"Run time of {run_for}s reached")
        else:
            await stop_event.wait()
    finally:
        await simulator.stop()


def main():
    """CLI entry point for the simulator."""
    import argparse

    parser = argparse.ArgumentParser(
        description="petWalk Door Simulator - Fake door HTTP API for testing"
    )
    parser.add_argument(
        "--host", "-H",
        default="0.0.0.0",
        help="Address to bind (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--door",
        choices=(DOOR_OPEN, DOOR_CLOSED),
        default=DOOR_CLOSED,
        help="Initial door position (default: closed)"
    )
    parser.add_argument(
        "--system",
        choices=(SYSTEM_ON, SYSTEM_OFF),
        default=SYSTEM_ON,
        help="Initial system state (default: on)"
    )
    parser.add_argument(
        "--latency",
        type=float,
        default=0.0,
        metavar="SECONDS",
        help="Delay before every response (default: 0)"
    )
    parser.add_argument(
        "--actuation-delay",
        type=float,
        default=0.0,
        metavar="SECONDS",
        help="Time for the door to move after a command (default: 0)"
    )
    parser.add_argument(
        "--run-for", "-r",
        type=float,
        metavar="SECONDS",
        help="Maximum run time in seconds"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.latency < 0 or args.actuation_delay < 0:
        parser.error("--latency and --actuation-delay must not be negative")

    state = DeviceSimulatorState(
        door=args.door,
        system=args.system,
        timing=DeviceTimingConfig(
            latency=args.latency,
            actuation_delay=args.actuation_delay,
        ),
    )

    try:
        asyncio.run(run_simulator(
            host=args.host,
            port=args.port,
            state=state,
            run_for=args.run_for,
        ))
    except KeyboardInterrupt:
        print("\nSimulator stopped.")


if __name__ == "__main__":
    main()
