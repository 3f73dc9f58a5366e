import asyncio
import socket
from pathlib import Path

import pytest

from ton_trigger.actions import LoggingDragAction
from ton_trigger.config import AppConfig, ConfigStore, load_config
from ton_trigger.errors import ConfigError
from ton_trigger.main import TriggerService, main, parse_args


class TestParseArgs:

    def test_defaults(self):
        options = parse_args([])

        assert options.config_path == Path("config.conf")
        assert options.overrides == {}
        assert options.force_start is False
        assert options.watch_config is True
        assert options.log_level == "INFO"

    def test_all_options(self):
        options = parse_args([
            "--config=/tmp/ton.conf",
            "--port=9100",
            "--window=My Game",
            "--drag-time=250",
            "--start",
            "--no-watch",
            "--log-file=/tmp/ton.log",
            "--log-level=debug",
        ])

        assert options.config_path == Path("/tmp/ton.conf")
        assert options.overrides == {"port": 9100, "window_name": "My Game", "drag_duration_ms": 250}
        assert options.force_start is True
        assert options.watch_config is False
        assert options.log_file == Path("/tmp/ton.log")
        assert options.log_level == "DEBUG"

    @pytest.mark.parametrize("argv", [
        ["--port=abc"],
        ["--port=70000"],
        ["--drag-time=-1"],
        ["--log-level=LOUD"],
        ["--unknown"],
    ])
    def test_invalid_arguments(self, argv):
        with pytest.raises(ConfigError):
            parse_args(argv)

    def test_main_returns_2_on_invalid_arguments(self, capsys):
        assert main(["--port=abc"]) == 2
        assert "Usage" in capsys.readouterr().out

    def test_main_help(self, capsys):
        assert main(["--help"]) == 0
        assert "--drag-time" in capsys.readouterr().out


def make_service(tmp_path, **config):
    store = ConfigStore(tmp_path / "config.conf", config=AppConfig(**config))
    statuses = []
    service = TriggerService(
        store,
        action=LoggingDragAction(),
        status_callback=lambda message, severity: statuses.append((message, severity)),
        host="127.0.0.1",
    )
    return service, statuses


class TestTriggerService:

    @pytest.mark.asyncio
    async def test_start_saves_config_and_listens(self, tmp_path):
        service, _ = make_service(tmp_path, port=0, window_name="Game")

        await service.start()
        try:
            assert service.is_running()
        finally:
            await service.stop()

        assert load_config(tmp_path / "config.conf").window_name == "Game"
        assert not service.is_running()

    @pytest.mark.asyncio
    async def test_toggle(self, tmp_path):
        service, statuses = make_service(tmp_path, port=0)

        await service.toggle()
        assert service.is_running()
        await service.toggle()
        assert not service.is_running()

        assert [message for message, _ in statuses] == ["Status: Running", "Status: Stopped"]

    @pytest.mark.asyncio
    async def test_toggle_logs_bind_error(self, tmp_path):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        blocker.bind(("127.0.0.1", 0))
        try:
            service, statuses = make_service(tmp_path, port=blocker.getsockname()[1])
            await service.toggle()
        finally:
            blocker.close()

        assert not service.is_running()
        assert statuses[-1][0].startswith("Error:")

    @pytest.mark.asyncio
    async def test_run_without_auto_start_waits_for_stop(self, tmp_path):
        service, statuses = make_service(tmp_path, port=0, auto_start=False)
        stop_event = asyncio.Event()
        stop_event.set()

        assert await service.run(stop_event) == 0
        assert statuses == []

    @pytest.mark.asyncio
    async def test_run_with_auto_start(self, tmp_path):
        service, _ = make_service(tmp_path, port=0, auto_start=True)
        stop_event = asyncio.Event()

        task = asyncio.create_task(service.run(stop_event))
        await asyncio.sleep(0.1)
        assert service.is_running()

        stop_event.set()
        assert await asyncio.wait_for(task, timeout=2.0) == 0
        assert not service.is_running()

    @pytest.mark.asyncio
    async def test_run_returns_1_when_start_fails(self, tmp_path):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        blocker.bind(("127.0.0.1", 0))
        try:
            service, _ = make_service(tmp_path, port=blocker.getsockname()[1])
            result = await service.run(asyncio.Event(), force_start=True)
        finally:
            blocker.close()

        assert result == 1
