"""Chain transports implementing `ILogSubscriber`."""

from __future__ import annotations

from dexwatch.clients.rpc import PollingSubscriber, parse_rpc_log
from dexwatch.clients.ws import WebSocketSubscriber
from dexwatch.core.errors import SubscriptionError


def make_subscriber(
    url: str,
    *,
    timeout_s: int = 20,
    poll_interval_s: float = 2.0,
) -> WebSocketSubscriber | PollingSubscriber:
    """Pick the transport from the endpoint's URL scheme."""
    scheme = url.split("://", 1)[0].lower() if "://" in url else ""
    if scheme in ("ws", "wss"):
        return WebSocketSubscriber(url, timeout_s=timeout_s)
    if scheme in ("http", "https"):
        return PollingSubscriber(url, timeout_s=timeout_s, poll_interval_s=poll_interval_s)
    raise SubscriptionError(f"Unsupported endpoint scheme: {url!r} (expected ws/wss/http/https)")


__all__ = ["PollingSubscriber", "WebSocketSubscriber", "make_subscriber", "parse_rpc_log"]
