" generic fixtures "
import shutil
import socket
import tempfile
from pathlib import Path

import pytest


def pytest_configure():
    "Runs once before all"
    from hyprsock.logging_setup import init_logger

    init_logger("/dev/null", force_debug=True)


@pytest.fixture
def hyprland_env(monkeypatch):
    "A complete Hyprland environment, returns the expected sockets folder"
    monkeypatch.setenv("XDG_RUNTIME_DIR", "/run/user/1000")
    monkeypatch.setenv("HYPRLAND_INSTANCE_SIGNATURE", "abc123_1700000000_42")
    return Path("/run/user/1000/hypr/abc123_1700000000_42")


@pytest.fixture
def no_hyprland_env(monkeypatch):
    "Neither Hyprland variable is set"
    monkeypatch.delenv("XDG_RUNTIME_DIR", raising=False)
    monkeypatch.delenv("HYPRLAND_INSTANCE_SIGNATURE", raising=False)


@pytest.fixture
def short_tmp():
    "A temporary folder with a path short enough for AF_UNIX sockets"
    path = tempfile.mkdtemp(prefix="hs-", dir="/tmp")  # noqa: S108
    yield Path(path)
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def socket_pair():
    "(local, remote) connected Unix sockets, the test plays the compositor on `remote`"
    local, remote = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    local.settimeout(5)
    remote.settimeout(5)
    yield local, remote
    local.close()
    remote.close()
