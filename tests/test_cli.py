import asyncio
import socket

from ts_live_server.cli import build_config, main, parse_args, run, watch
from ts_live_server.server import ServerConfig


class CountingServer:
    def __init__(self):
        self.notified = 0

    def notify_clients(self):
        self.notified += 1


def test_defaults_match_editor_settings():
    args = parse_args([])
    assert args.root == "."
    assert args.port == 5500
    assert args.live_reload is True
    assert args.open is True
    assert args.verbose is False


def test_flags(tmp_path):
    args = parse_args([str(tmp_path), "--port", "8080", "--no-open", "--no-live-reload", "-v"])
    config = build_config(args)
    assert config == ServerConfig(str(tmp_path), 8080, False, "localhost")
    assert args.open is False
    assert args.verbose is True


def test_invalid_port_exits_with_usage_error(tmp_path, capsys):
    assert main([str(tmp_path), "--port", "0"]) == 2
    assert "port must be between" in capsys.readouterr().out


def test_port_in_use_is_reported_once(tmp_path, capsys):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        port = blocker.getsockname()[1]

        config = ServerConfig(str(tmp_path), port, host="127.0.0.1")
        assert asyncio.run(run(config, open_browser=False)) == 1

    out = capsys.readouterr().out
    assert out.count("is already in use") == 1


def test_watch_notifies_on_changes(tmp_path):
    server = CountingServer()

    async def main():
        stop = asyncio.Event()
        task = asyncio.create_task(watch(server, str(tmp_path), stop_event=stop))
        await asyncio.sleep(0.3)
        (tmp_path / "page.html").write_text("<p>new</p>")

        deadline = asyncio.get_running_loop().time() + 10
        while server.notified == 0 and asyncio.get_running_loop().time() < deadline:
            await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, 5)

    asyncio.run(main())
    assert server.notified >= 1
