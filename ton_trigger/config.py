"""
Configuration for the ton-trigger service.

The configuration lives in a small key=value file:

    Port=9001
    DragTime=5000
    WindowName=VRChat
    AutoStart=False

ConfigStore keeps the current values in memory and can be reloaded while the
service runs. ConfigFileWatcher reloads the store whenever the file changes on
disk, so the trigger always uses the latest window name and drag time.
"""

import logging
import os
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .constants import ConfigDefaults, ConfigKeys, ListenerConstants
from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerConfig:
    """The values the drag action needs, read at dispatch time."""
    window_name: str
    drag_duration_ms: int


@dataclass(frozen=True)
class AppConfig:
    """All persisted settings."""
    port: int = ConfigDefaults.PORT
    drag_duration_ms: int = ConfigDefaults.DRAG_TIME_MS
    window_name: str = ConfigDefaults.WINDOW_NAME
    auto_start: bool = ConfigDefaults.AUTO_START

    def trigger_config(self) -> TriggerConfig:
        return TriggerConfig(window_name=self.window_name, drag_duration_ms=self.drag_duration_ms)


def parse_port(value: Union[str, int]) -> int:
    """Parse a UDP port number."""
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Port must be a number: {value!r}")
    if not ListenerConstants.MIN_PORT <= port <= ListenerConstants.MAX_PORT:
        raise ConfigError(f"Port must be between 0 and 65535: {port}")
    return port


def parse_drag_time(value: Union[str, int]) -> int:
    """Parse a drag duration in milliseconds."""
    try:
        drag_time = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"DragTime must be a number of milliseconds: {value!r}")
    if drag_time < 0:
        raise ConfigError(f"DragTime must not be negative: {drag_time}")
    return drag_time


def parse_bool(value: str) -> bool:
    """Parse True/False, case-insensitively."""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ConfigError(f"Expected True or False: {value!r}")


_PARSERS = {
    ConfigKeys.PORT: ("port", parse_port),
    ConfigKeys.DRAG_TIME: ("drag_duration_ms", parse_drag_time),
    ConfigKeys.WINDOW_NAME: ("window_name", str),
    ConfigKeys.AUTO_START: ("auto_start", parse_bool),
}


def parse_config(text: str) -> AppConfig:
    """
    Parse the contents of a config file.

    Lines that do not split into exactly one key and one value are ignored,
    as are unknown keys. Invalid values are logged and the default is kept.
    """
    values: Dict[str, object] = {}

    for line in text.splitlines():
        parts = line.split("=")
        if len(parts) != 2:
            continue

        key, raw = parts[0].strip(), parts[1].strip()
        if key not in _PARSERS:
            logger.debug(f"Ignoring unknown config key: {key}")
            continue

        field_name, parser = _PARSERS[key]
        try:
            values[field_name] = parser(raw)
        except ConfigError as e:
            logger.warning(f"Invalid value for {key}, using default: {e}")

    return AppConfig(**values)


def load_config(path: Union[str, Path]) -> AppConfig:
    """Load the config file, or return defaults if it does not exist."""
    path = Path(path)
    if not path.exists():
        logger.info(f"No config file at {path}, using defaults")
        return AppConfig()
    return parse_config(path.read_text(encoding="utf-8"))


def format_config(config: AppConfig) -> str:
    lines = [
        f"{ConfigKeys.PORT}={config.port}",
        f"{ConfigKeys.DRAG_TIME}={config.drag_duration_ms}",
        f"{ConfigKeys.WINDOW_NAME}={config.window_name}",
        f"{ConfigKeys.AUTO_START}={config.auto_start}",
    ]
    return "\n".join(lines) + "\n"


def save_config(path: Union[str, Path], config: AppConfig) -> None:
    """
    Write the config file.

    The file is written next to the target and moved into place, so a watcher
    never sees it empty or half written.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(format_config(config), encoding="utf-8")
    os.replace(tmp_path, path)


class ConfigStore:
    """
    Thread-safe holder of the current configuration.

    Readers always get an immutable snapshot; reload() and update() replace it.
    """

    def __init__(self, path: Union[str, Path] = ConfigDefaults.CONFIG_FILE, config: Optional[AppConfig] = None):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._config = config if config is not None else load_config(self.path)

    def get(self) -> AppConfig:
        with self._lock:
            return self._config

    def trigger_config(self) -> TriggerConfig:
        """Current window name and drag time."""
        return self.get().trigger_config()

    def update(self, **changes) -> AppConfig:
        """Replace individual settings, e.g. update(port=9002)."""
        with self._lock:
            self._config = replace(self._config, **changes)
            return self._config

    def reload(self) -> AppConfig:
        """Re-read the config file."""
        config = load_config(self.path)
        with self._lock:
            self._config = config
        logger.info(
            f"Config reloaded: port={config.port} window='{config.window_name}' "
            f"drag_time={config.drag_duration_ms}ms"
        )
        return config

    def save(self) -> None:
        save_config(self.path, self.get())


class ConfigFileHandler(FileSystemEventHandler):
    """
    File system event handler for the config file.

    Reloads the store when the config file is modified, created or replaced.
    """

    def __init__(self, store: ConfigStore):
        self.store = store
        self.config_path = store.path.resolve()

    def _is_config(self, path) -> bool:
        return bool(path) and Path(path).resolve() == self.config_path

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_config(event.src_path):
            self._reload()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_config(event.src_path):
            self._reload()

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically move a temp file onto the target
        if not event.is_directory and self._is_config(getattr(event, "dest_path", None)):
            self._reload()

    def _reload(self) -> None:
        try:
            self.store.reload()
        except OSError as e:
            logger.error(f"Error reloading config file: {e}")


class ConfigFileWatcher:
    """
    Watches the config file and reloads the store on changes.

    Usage:
        watcher = ConfigFileWatcher(store)
        watcher.start()

        # Later...
        watcher.stop()
    """

    def __init__(self, store: ConfigStore):
        self.store = store
        self.handler = ConfigFileHandler(store)
        self.observer: Optional[Observer] = None

    def start(self) -> None:
        """Start watching for config file changes."""
        if self.observer and self.observer.is_alive():
            raise RuntimeError("Watcher is already running")

        watch_dir = self.store.path.resolve().parent
        if not watch_dir.exists():
            raise FileNotFoundError(f"Path does not exist: {watch_dir}")

        self.observer = Observer()
        self.observer.schedule(self.handler, str(watch_dir), recursive=False)
        self.observer.start()
        logger.info(f"Watching config file: {self.store.path}")

    def stop(self) -> None:
        """Stop watching for config file changes."""
        if self.observer:
            self.observer.stop()
            self.observer.join()
            self.observer = None
            logger.info("Stopped watching config file")

    def is_running(self) -> bool:
        return self.observer is not None and self.observer.is_alive()
