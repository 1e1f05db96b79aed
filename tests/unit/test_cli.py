"""
Unit tests for the command-line entry point.
"""

import socket
import logging

import pytest

from tinyhttpd.__main__ import main, build_parser
from tinyhttpd.config import ServerConfig


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """main() reads the environment and reconfigures the tinyhttpd logger."""
    for name in ("HOST", "PORT", "TCP_BACKLOG", "DOCUMENT_ROOT", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)

    package_logger = logging.getLogger("tinyhttpd")
    level = package_logger.level
    yield
    package_logger.setLevel(level)


class TestBuildParser:

    def test_defaults_come_from_config(self):
        args = build_parser(ServerConfig(port=4000, log_level="DEBUG")).parse_args([])

        assert args.port == 4000
        assert args.host == "127.0.0.1"
        assert args.log_level == "DEBUG"
        assert args.root is None

    def test_flags_override(self):
        args = build_parser(ServerConfig()).parse_args(
            ["-p", "8080", "-H", "0.0.0.0", "-b", "5", "-r", "/srv", "-l", "debug", "--log-format", "json"]
        )

        assert args.port == 8080
        assert args.host == "0.0.0.0"
        assert args.backlog == 5
        assert args.root == "/srv"
        assert args.log_level == "DEBUG"
        assert args.log_format == "json"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser(ServerConfig()).parse_args(["--version"])

        assert exc_info.value.code == 0
        assert "tinyhttpd" in capsys.readouterr().out


class TestMain:

    def test_bad_environment(self, monkeypatch, capsys):
        monkeypatch.setenv("PORT", "not-a-port")

        assert main([]) == 2
        assert "PORT" in capsys.readouterr().err

    def test_missing_document_root(self, tmp_path):

        assert main(["--root", str(tmp_path / "missing")]) == 2

    def test_invalid_port(self, tmp_path):
        assert main(["--port", "70000", "--root", str(tmp_path)]) == 2

    def test_bind_failure(self, tmp_path):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        port = blocker.getsockname()[1]

        try:
            code = main([
                "--host", "127.0.0.1",
                "--port", str(port),
                "--root", str(tmp_path),
                "--log-level", "ERROR",
            ])
        finally:
            blocker.close()

        assert code == 1
