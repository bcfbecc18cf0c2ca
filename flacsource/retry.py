"""Retry HTTP requests through a proxy when the direct route is blocked."""

from __future__ import annotations

import logging
from http import HTTPStatus
from urllib.parse import urlsplit, urlunsplit

import requests

log = logging.getLogger(__name__)

_PROXY_RETRY_STATUSES = frozenset(
    {
        HTTPStatus.FORBIDDEN,
        HTTPStatus.TOO_MANY_REQUESTS,
        HTTPStatus.UNAVAILABLE_FOR_LEGAL_REASONS,
    }
)


def should_retry_with_proxy(status: int) -> bool:
    """Return True for geo-block, rate-limit and legal-block status codes."""
    return status in _PROXY_RETRY_STATUSES


def _prepare(request: requests.Request | requests.PreparedRequest) -> requests.PreparedRequest:
    if isinstance(request, requests.Request):
        return request.prepare()
    return request


def _send_proxied(
    proxy_session: requests.Session,
    prepared: requests.PreparedRequest,
    proxy_target: str,
) -> requests.Response:
    retry = prepared.copy()
    if proxy_target:
        target = urlsplit(proxy_target)
        if target.netloc:
            current = urlsplit(retry.url)
            retry.url = urlunsplit(current._replace(scheme=target.scheme, netloc=target.netloc))
            if "Host" in retry.headers:
                retry.headers["Host"] = target.netloc
    return proxy_session.send(retry)


def do_with_proxy_fallback(
    direct_session: requests.Session | None,
    proxy_session: requests.Session | None,
    request: requests.Request | requests.PreparedRequest,
    proxy_target: str = "",
) -> requests.Response:
    """Send ``request`` directly, retrying through ``proxy_session`` when blocked.

    The retry happens when the direct attempt fails outright or answers with
    403, 429 or 451, and only if a proxy session is given. When
    ``proxy_target`` is set, the retried request is rewritten to its scheme
    and host.
    """
    if direct_session is None:
        raise ValueError("direct session is None")

    prepared = _prepare(request)
    try:
        response = direct_session.send(prepared)
    except requests.RequestException as exc:
        if proxy_session is None:
            raise
        log.warning("direct request failed, retrying via proxy: %s", exc)
        return _send_proxied(proxy_session, prepared, proxy_target)

    if proxy_session is None or not should_retry_with_proxy(response.status_code):
        return response

    log.warning(
        "direct request blocked, retrying via proxy: status=%d url=%s",
        response.status_code,
        prepared.url,
    )
    response.close()
    return _send_proxied(proxy_session, prepared, proxy_target)