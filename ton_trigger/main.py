import asyncio
import logging
import signal
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .actions import DragAction, create_default_action
from .config import ConfigFileWatcher, ConfigStore, parse_drag_time, parse_port
from .constants import ConfigDefaults
from .errors import ConfigError, StartError
from .status import StatusCallback, log_status
from .trigger import TriggerDispatcher
from .udp_listener import UDPListener


# Configure logging
logger = logging.getLogger(__name__)


def setup_logging(log_file: Path = None, level: str = "INFO"):
    """
    Configure logging to both file and console.

    Args:
        log_file: Path to log file (optional)
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    simple_formatter = logging.Formatter(
        '%(levelname)s: %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    root_logger.handlers = []

    # Console handler (simple format)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    # File handler (detailed format)
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")

    return root_logger


class TriggerService:
    """
    Wires the config store, dispatcher and UDP listener together.

    start()/stop()/toggle() behave like the Start/Stop button of a GUI: the
    port is read from the store when starting and the current settings are
    saved to the config file.
    """

    def __init__(
        self,
        store: ConfigStore,
        action: Optional[DragAction] = None,
        status_callback: Optional[StatusCallback] = None,
        host: str = "0.0.0.0",
    ):
        self.store = store
        self.status_callback = status_callback or log_status
        self.dispatcher = TriggerDispatcher(
            config_provider=store.trigger_config,
            action=action or create_default_action(),
            status_callback=self.status_callback,
        )
        self.listener = UDPListener(
            packet_callback=self.dispatcher.handle_packet,
            status_callback=self.status_callback,
            host=host,
        )

    def is_running(self) -> bool:
        return self.listener.is_running()

    async def start(self) -> None:
        """
        Save the config and start listening on the configured port.

        Raises:
            StartError: If the listener is running or the port cannot be bound
        """
        config = self.store.get()
        try:
            self.store.save()
        except OSError as e:
            logger.warning(f"Could not save config to {self.store.path}: {e}")
        await self.listener.start(config.port)

    async def stop(self) -> None:
        await self.listener.stop()

    async def toggle(self) -> None:
        """Start if stopped, stop if running. Start errors are only logged."""
        if self.is_running():
            await self.stop()
            return
        try:
            await self.start()
        except StartError as e:
            logger.error(f"Could not start listener: {e}")

    async def run(self, stop_event: asyncio.Event, force_start: bool = False) -> int:
        """
        Run until stop_event is set.

        Returns:
            Exit code: 1 if an automatic start failed, otherwise 0
        """
        if force_start or self.store.get().auto_start:
            try:
                await self.start()
            except StartError:
                return 1
        else:
            logger.info("Auto start is off; send SIGUSR1 to start listening")

        await stop_event.wait()
        await self.stop()

        stats = {**self.listener.get_stats(), **self.dispatcher.get_stats()}
        logger.info(
            f"Packets received: {stats['packets_received']}, "
            f"parse errors: {stats['parse_errors']}, "
            f"triggers: {stats['triggers']}, "
            f"action errors: {stats['action_errors']}"
        )
        return 0


@dataclass
class Options:
    """Parsed command line options."""
    config_path: Path = Path(ConfigDefaults.CONFIG_FILE)
    overrides: Dict[str, object] = field(default_factory=dict)
    force_start: bool = False
    watch_config: bool = True
    log_file: Optional[Path] = None
    log_level: str = "INFO"


USAGE = """Usage: ton-trigger [OPTIONS]

Options:
  --config=PATH      - Config file (default: config.conf)
  --port=PORT        - UDP port to listen on
  --window=NAME      - Title of the window to drag
  --drag-time=MS     - How long to hold the mouse button, in milliseconds
  --start            - Start listening even if AutoStart is off
  --no-watch         - Do not reload the config file when it changes

Logging Options:
  --log-file=PATH    - Log to file (default: stdout only)
  --log-level=LEVEL  - Logging level: DEBUG, INFO, WARNING, ERROR (default: INFO)
"""


def parse_args(argv: List[str]) -> Options:
    """
    Parse command line arguments.

    Raises:
        ConfigError: On unknown options or invalid values
    """
    options = Options()

    for arg in argv:
        key, _, value = arg.partition("=")
        if key == "--config":
            options.config_path = Path(value)
        elif key == "--port":
            options.overrides["port"] = parse_port(value)
        elif key == "--window":
            options.overrides["window_name"] = value
        elif key == "--drag-time":
            options.overrides["drag_duration_ms"] = parse_drag_time(value)
        elif arg == "--start":
            options.force_start = True
        elif arg == "--no-watch":
            options.watch_config = False
        elif key == "--log-file":
            options.log_file = Path(value)
        elif key == "--log-level":
            if value.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
                raise ConfigError(f"Unknown log level: {value}")
            options.log_level = value.upper()
        else:
            raise ConfigError(f"Unknown option: {arg}")

    return options


async def run_service(options: Options) -> int:
    """Run the trigger service until SIGINT/SIGTERM."""
    store = ConfigStore(options.config_path)
    if options.overrides:
        store.update(**options.overrides)

    service = TriggerService(store)
    stop_event = asyncio.Event()

    watcher = None
    if options.watch_config:
        watcher = ConfigFileWatcher(store)
        watcher.start()

    loop = asyncio.get_running_loop()
    toggle_tasks = set()
    if sys.platform != "win32":
        def toggle():
            task = asyncio.create_task(service.toggle())
            toggle_tasks.add(task)
            task.add_done_callback(toggle_tasks.discard)

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)
        loop.add_signal_handler(signal.SIGUSR1, toggle)

    try:
        return await service.run(stop_event, force_start=options.force_start)
    finally:
        if watcher:
            watcher.stop()


def main(argv: List[str] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if "-h" in argv or "--help" in argv:
        print(USAGE)
        return 0

    try:
        options = parse_args(argv)
    except ConfigError as e:
        print(f"Error: {e}\n")
        print(USAGE)
        return 2

    setup_logging(log_file=options.log_file, level=options.log_level)

    try:
        return asyncio.run(run_service(options))
    except KeyboardInterrupt:
        print("\nShutdown complete.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
