from __future__ import annotations

import socket
from types import SimpleNamespace

import pytest

import wifibook.netinfo as netinfo


def _addr(address: str, family: int = socket.AF_INET) -> SimpleNamespace:
    return SimpleNamespace(family=family, address=address)


@pytest.fixture
def fake_interfaces(monkeypatch):
    addrs: dict[str, list[SimpleNamespace]] = {}
    stats: dict[str, SimpleNamespace] = {}

    def _add(name: str, *addresses: SimpleNamespace, up: bool = True) -> None:
        addrs[name] = list(addresses)
        stats[name] = SimpleNamespace(isup=up)

    monkeypatch.setattr(netinfo.psutil, "net_if_addrs", lambda: addrs)
    monkeypatch.setattr(netinfo.psutil, "net_if_stats", lambda: stats)
    return _add


def test_prefers_wifi_interface(fake_interfaces) -> None:
    fake_interfaces("lo", _addr("127.0.0.1"))
    fake_interfaces("eth0", _addr("10.0.0.5"))
    fake_interfaces("wlan0", _addr("fe80::1", socket.AF_INET6), _addr("192.168.1.23"))
    assert netinfo.resolve_lan_address() == "192.168.1.23"


def test_en0_wins_over_other_wifi_names(fake_interfaces) -> None:
    fake_interfaces("wlp2s0", _addr("192.168.1.40"))
    fake_interfaces("en0", _addr("192.168.1.41"))
    assert netinfo.resolve_lan_address() == "192.168.1.41"


def test_interface_that_is_down_is_skipped(fake_interfaces) -> None:
    fake_interfaces("wlan0", _addr("192.168.1.23"), up=False)
    fake_interfaces("eth0", _addr("10.0.0.5"))
    assert netinfo.resolve_lan_address() is None


def test_explicit_interface(fake_interfaces) -> None:
    fake_interfaces("eth0", _addr("10.0.0.5"))
    fake_interfaces("wlan0", _addr("192.168.1.23"))
    assert netinfo.resolve_lan_address("eth0") == "10.0.0.5"
    assert netinfo.resolve_lan_address("eth9") is None


def test_bind_address_uses_concrete_host(fake_interfaces) -> None:
    fake_interfaces("wlan0", _addr("192.168.1.23"))
    assert netinfo.resolve_bind_address("127.0.0.1") == "127.0.0.1"
    assert netinfo.resolve_bind_address("0.0.0.0") == "192.168.1.23"


def test_format_address() -> None:
    assert netinfo.format_address("192.168.1.23", 8080) == "http://192.168.1.23:8080"
