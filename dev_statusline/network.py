"""Network identity probe used to invalidate speed results on network changes."""

from __future__ import annotations

import asyncio
import logging
import re
import socket

import psutil

from . import cli

logger = logging.getLogger(__name__)

_AIRPORT = (
    "/System/Library/PrivateFrameworks/Apple80211.framework/Versions/Current"
    "/Resources/airport"
)
_NOT_ASSOCIATED = "You are not associated with an AirPort network."
_PROBE_TIMEOUT_S = 2

_AIRPORT_SSID_RE = re.compile(r"^\s*SSID:\s*(.+?)\s*$", re.MULTILINE)
_ROUTE_IFACE_RE = re.compile(r"^\s*interface:\s*(\S+)", re.MULTILINE)
_IP_ROUTE_DEV_RE = re.compile(r"\bdev\s+(\S+)")


async def wifi_ssid() -> str | None:
    """Return the current WiFi network name, or None when not on WiFi."""
    rc, out, _ = await cli.run_cmd([_AIRPORT, "-I"], timeout=_PROBE_TIMEOUT_S)
    if rc == 0:
        m = _AIRPORT_SSID_RE.search(out)
        if m:
            return m.group(1)

    rc, out, _ = await cli.run_cmd(
        ["networksetup", "-getairportnetwork", "en0"], timeout=_PROBE_TIMEOUT_S
    )
    if rc == 0 and _NOT_ASSOCIATED not in out and ":" in out:
        ssid = out.split(":", 1)[1].strip()
        if ssid:
            return ssid

    rc, out, _ = await cli.run_cmd(["iwgetid", "-r"], timeout=_PROBE_TIMEOUT_S)
    if rc == 0 and out:
        return out
    return None


async def default_interface() -> str | None:
    """Return the interface carrying the default route."""
    rc, out, _ = await cli.run_cmd(["route", "get", "default"], timeout=_PROBE_TIMEOUT_S)
    if rc == 0:
        m = _ROUTE_IFACE_RE.search(out)
        if m:
            return m.group(1)

    rc, out, _ = await cli.run_cmd(
        ["ip", "route", "show", "default"], timeout=_PROBE_TIMEOUT_S
    )
    if rc == 0:
        m = _IP_ROUTE_DEV_RE.search(out)
        if m:
            return m.group(1)

    try:
        return await asyncio.to_thread(_first_active_interface)
    except Exception:
        logger.debug("interface lookup via psutil failed", exc_info=True)
    return None


def _first_active_interface() -> str | None:
    stats = psutil.net_if_stats()
    for iface, addrs in psutil.net_if_addrs().items():
        st = stats.get(iface)
        if st is None or not st.isup:
            continue
        for a in addrs:
            if a.family == socket.AF_INET and not a.address.startswith("127."):
                return iface
    return None


async def current_identity() -> str:
    """Identify the current network attachment. Never raises.

    Returns ``wifi:<ssid>``, ``interface:<name>`` or ``unknown``.
    """
    try:
        ssid = await wifi_ssid()
        if ssid:
            return f"wifi:{ssid}"
        iface = await default_interface()
        if iface:
            return f"interface:{iface}"
    except Exception:
        logger.debug("network identity probe failed", exc_info=True)
    return "unknown"
