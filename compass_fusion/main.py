#!/usr/bin/env python3
"""Command line entry point for the compass service.

Runs the compass listener against the simulated sensor source and prints
one JSON object per heading poll to stdout.
"""

import argparse
import logging
import signal
import sys
import time
from typing import Optional

from .core import Config, SampleValidator, SystemClock, load_config
from .core.types import ChannelKind, SensorSample
from .listener import CompassListener
from .plugin import CompassPlugin, PluginResult
from .sensors import SimulatedSensorSource

logger = logging.getLogger(__name__)

SHUTDOWN_REQUESTED = False


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    global SHUTDOWN_REQUESTED
    SHUTDOWN_REQUESTED = True
    logger.info("Shutdown requested")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def emit(result: PluginResult) -> None:
    """Print a plugin result as one JSON line."""
    if not result.ok:
        logger.warning("%s: %s", result.status.value, result.message)
    print(result.to_json(), flush=True)


def check_source(source: SimulatedSensorSource, config: Config) -> None:
    """Log plausibility findings for one synthetic sample per channel."""
    validator = SampleValidator(config)
    now = SystemClock().now()
    for kind in (ChannelKind.GRAVITY, ChannelKind.MAGNETIC_FIELD):
        sample = SensorSample.from_vector(source.generate(kind, now), now)
        result = validator.validate(kind, sample)
        for error in result.errors:
            logger.error("Simulated %s: %s", kind.value, error)
        for warning in result.warnings:
            logger.warning("Simulated %s: %s", kind.value, warning)


def run_compass(config: Config, duration_s: Optional[float] = None) -> int:
    """Poll the compass heading until shutdown or ``duration_s`` elapses.

    Args:
        config: System configuration.
        duration_s: Run time in seconds, None to run until interrupted.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    clock = SystemClock()
    source = SimulatedSensorSource(config, clock=clock)
    check_source(source, config)

    listener = CompassListener(source, config=config, clock=clock)
    plugin = CompassPlugin(listener)

    poll_interval = config.output.poll_interval_s
    started = time.time()
    polls = 0

    try:
        logger.info("Starting compass (idle timeout %d ms)", listener.get_timeout())
        while not SHUTDOWN_REQUESTED:
            plugin.execute("getHeading", respond=emit)
            polls += 1

            if duration_s is not None and time.time() - started >= duration_s:
                break
            time.sleep(poll_interval)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    finally:
        plugin.on_destroy()
        source.close()
        logger.info("Final statistics:")
        logger.info("  Polls: %d", polls)
        logger.info("  Samples: %d", source.sample_count)

    return 0


def main() -> int:
    """Application entry point.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        description="Compass heading from gravity and magnetic field sensors"
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-d", "--duration",
        type=float,
        default=None,
        help="Run time in seconds (default: until interrupted)",
    )
    parser.add_argument(
        "--idle-timeout",
        type=int,
        default=None,
        help="Idle timeout in milliseconds",
    )
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except Exception as e:
        logger.error("Failed to load configuration: %s", e)
        return 1

    if args.idle_timeout is not None:
        config.listener.idle_timeout_ms = args.idle_timeout

    return run_compass(config, duration_s=args.duration)


if __name__ == "__main__":
    sys.exit(main())
