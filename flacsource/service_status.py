"""Health checks for external music services, with a shared TTL cache."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import requests

PROBE_TIMEOUT = 10.0

DEFAULT_ENDPOINTS: dict[str, str] = {
    "tidal": "https://tidal.com",
    "qobuz": "https://www.qobuz.com",
    "amazon": "https://music.amazon.com",
    "deezer": "https://www.deezer.com",
    "lucida": "https://lucida.to",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ServiceStatus:
    """The health of one service: "up", "down" or "unknown"."""

    status: str
    checked_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "checkedAt": self.checked_at.isoformat()}


class ServiceStatusCache:
    """Thread-safe cache of service statuses that expire after ``ttl``."""

    def __init__(self, ttl: timedelta = timedelta(minutes=5)) -> None:
        self.ttl = ttl
        self._entries: dict[str, ServiceStatus] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> ServiceStatus | None:
        """Return the cached status for ``name`` if it is still fresh."""
        with self._lock:
            cached = self._entries.get(name)
        if cached is not None and _now() - cached.checked_at < self.ttl:
            return cached
        return None

    def put(self, name: str, status: ServiceStatus) -> None:
        with self._lock:
            self._entries[name] = status


DEFAULT_CACHE = ServiceStatusCache()


def probe_service(endpoint: str, proxy_url: str = "") -> ServiceStatus:
    """Send a HEAD request to ``endpoint``; a 5xx or a failure counts as down."""
    proxies = {"http": proxy_url, "https": proxy_url} if proxy_url else None
    try:
        response = requests.head(
            endpoint, timeout=PROBE_TIMEOUT, proxies=proxies, allow_redirects=True
        )
    except requests.RequestException:
        return ServiceStatus("down")
    with response:
        return ServiceStatus("down" if response.status_code >= 500 else "up")


def check_service_status(
    proxy_url: str = "",
    endpoints: Mapping[str, str] | None = None,
    cache: ServiceStatusCache | None = None,
) -> dict[str, ServiceStatus]:
    """Return the status of every service, probing in parallel those not cached."""
    endpoints = DEFAULT_ENDPOINTS if endpoints is None else endpoints
    cache = DEFAULT_CACHE if cache is None else cache

    result: dict[str, ServiceStatus] = {}
    to_probe: dict[str, str] = {}
    for name, endpoint in endpoints.items():
        cached = cache.get(name)
        if cached is not None:
            result[name] = cached
        else:
            to_probe[name] = endpoint

    if to_probe:
        with ThreadPoolExecutor(max_workers=len(to_probe)) as pool:
            futures = {
                name: pool.submit(probe_service, endpoint, proxy_url)
                for name, endpoint in to_probe.items()
            }
            for name, future in futures.items():
                status = future.result()
                cache.put(name, status)
                result[name] = status

    return result