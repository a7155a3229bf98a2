"""rhino - Live GPU and system telemetry dashboard."""

import logging
import sys
import time
from collections.abc import Callable, Mapping
from typing import TextIO

from rhino.config import DashboardConfig
from rhino.dashboard import Dashboard
from rhino.errors import ConfigError, RhinoError, TerminalError
from rhino.sensors import GpuDevice, SensorSource
from rhino.snapshot import SnapshotBuilder
from rhino.terminal import TerminalController

logger = logging.getLogger(__name__)

BANNER = "Initializing Rhino..."
BANNER_TICKS = 6
BANNER_DELAY = 0.125  # seconds
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(config: DashboardConfig) -> None:
    """Send log records to the configured file, or stderr when unset."""
    logging.basicConfig(
        level=config.log_level,
        filename=config.log_file,
        format=LOG_FORMAT,
    )


def print_banner(stream: TextIO, sleep: Callable[[float], None] = time.sleep) -> None:
    """Print the startup progress dots."""
    for _ in range(BANNER_TICKS):
        stream.write("...\n")
        stream.flush()
        sleep(BANNER_DELAY)
    stream.write("\n")
    stream.flush()


def run(
    environ: Mapping[str, str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Start the dashboard and run it until interrupted or a fatal error.

    Returns:
        Process exit status: 0 after an interrupt, 1 after a fatal error.
    """
    stdout = sys.stdout if stdout is None else stdout
    stderr = sys.stderr if stderr is None else stderr

    try:
        config = DashboardConfig.from_env(environ)
    except ConfigError as exc:
        stderr.write(f"rhino: {exc}\n")
        return 1
    configure_logging(config)

    stdout.write(BANNER + "\n")
    stdout.flush()

    gpu: GpuDevice | None = None
    terminal: TerminalController | None = None
    try:
        gpu = GpuDevice.open(config.gpu_index)
        # The banner delay gives cpu_percent an interval to measure against
        sensors = SensorSource()
        print_banner(stdout, sleep)

        builder = SnapshotBuilder(sensors, gpu, config.gpu_failures)
        terminal = TerminalController.for_platform(stdout)
        dashboard = Dashboard(builder, terminal, stdout, config.interval, sleep)
        dashboard.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 0
    except RhinoError as exc:
        logger.debug("Stopping: %s", exc)
        if terminal is not None and not isinstance(exc, TerminalError):
            try:
                terminal.clear()
            except TerminalError as clear_exc:
                logger.debug("Could not clear before exiting: %s", clear_exc)
        stderr.write(f"rhino: {exc}\n")
        return 1
    finally:
        if gpu is not None:
            gpu.close()
    return 0


def main() -> None:
    """Entry point for the rhino dashboard."""
    sys.exit(run())


if __name__ == "__main__":
    main()
