from __future__ import annotations

import fnmatch
import socket

import psutil

# Checked in order; the first pattern with a live IPv4 interface wins.
WIFI_INTERFACE_PATTERNS = (
    "en0",
    "wlan*",
    "wlp*",
    "wl*",
    "Wi-Fi*",
    "Wireless*",
)

_WILDCARD_HOSTS = {"", "0.0.0.0"}


def _ipv4_addresses() -> dict[str, str]:
    stats = psutil.net_if_stats()
    found: dict[str, str] = {}
    for name, addresses in psutil.net_if_addrs().items():
        iface_stats = stats.get(name)
        if iface_stats is None or not iface_stats.isup:
            continue
        for address in addresses:
            if address.family == socket.AF_INET and address.address:
                found[name] = address.address
                break
    return found


def resolve_lan_address(interface: str | None = None) -> str | None:
    """Return the IPv4 address of the Wi-Fi interface, or None if none is up."""
    candidates = _ipv4_addresses()
    if interface:
        return candidates.get(interface)
    for pattern in WIFI_INTERFACE_PATTERNS:
        for name in sorted(candidates):
            if fnmatch.fnmatchcase(name, pattern):
                return candidates[name]
    return None


def resolve_bind_address(host: str, interface: str | None = None) -> str | None:
    if host not in _WILDCARD_HOSTS:
        return host
    return resolve_lan_address(interface)


def format_address(ip: str, port: int) -> str:
    return f"http://{ip}:{port}"


__all__ = [
    "WIFI_INTERFACE_PATTERNS",
    "format_address",
    "resolve_bind_address",
    "resolve_lan_address",
]
