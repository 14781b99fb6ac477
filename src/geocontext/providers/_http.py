"""Blocking HTTP helper shared by the network adapters.

Adapters call ``request_with_retry`` from a worker thread started by
``run_cancellable`` so the event loop never blocks on the network and a
cancelled lookup stops retrying.
"""

from __future__ import annotations

import asyncio
import logging
import random
import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

import requests

from geocontext.exceptions import ProviderError, UnauthorizedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAX_RETRIES = 3
_INITIAL_BACKOFF = 1.0  # seconds
_MAX_BACKOFF = 60.0  # seconds
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504, 408})
_UNAUTHORIZED_STATUS_CODES = frozenset({401, 403})
_SUCCESS_STATUS_CODES = frozenset({200})


def compute_backoff(attempt: int) -> float:
    """Compute exponential backoff with jitter.

    Args:
        attempt: Zero-based attempt index.

    Returns:
        Wait time in seconds (randomized).
    """
    base_delay: float = min(_INITIAL_BACKOFF * (2**attempt), _MAX_BACKOFF)
    jitter: float = random.uniform(0, base_delay * 0.1)  # noqa: S311
    return float(base_delay + jitter)


def _cancelled(service: str) -> ProviderError:
    return ProviderError(
        what=f"{service} request cancelled",
        cause="The caller stopped waiting for the result",
        fix="No action needed; the result is no longer required",
    )


def _pause(seconds: float, cancel_event: threading.Event | None) -> bool:
    """Sleep for *seconds*; return True if *cancel_event* fired meanwhile."""
    if cancel_event is None:
        time.sleep(seconds)
        return False
    return cancel_event.wait(seconds)


def request_with_retry(
    session: requests.Session,
    method: str,
    url: str,
    *,
    service: str,
    cancel_event: threading.Event | None = None,
    **kwargs: Any,
) -> requests.Response:
    """Execute an HTTP request with retry and exponential backoff.

    Transient statuses (408, 429, 5xx) and connection errors are retried
    up to three times. 401/403 fail immediately. Setting *cancel_event*
    stops the loop before the next attempt and interrupts a backoff wait.

    Args:
        session: Session that performs the request.
        method: HTTP method (``"get"``, ``"post"``, etc.).
        url: Target URL.
        service: Human-readable service name for messages.
        cancel_event: Set by the owning coroutine when it is cancelled.
        **kwargs: Passed through to ``requests.Session.request``.

    Returns:
        Successful HTTP response.

    Raises:
        UnauthorizedError: If the service rejects the credentials.
        ProviderError: On any other non-success status, when all
            retries are exhausted, or once *cancel_event* is set.
    """
    last_status: int = 0
    last_exc: requests.RequestException | None = None

    for attempt in range(_MAX_RETRIES):
        if cancel_event is not None and cancel_event.is_set():
            raise _cancelled(service)
        try:
            logger.debug("%s %s %s (attempt %d)", service, method.upper(), url, attempt + 1)
            resp = session.request(method, url, **kwargs)

            if resp.status_code in _SUCCESS_STATUS_CODES:
                return resp

            last_status = resp.status_code

            if resp.status_code in _UNAUTHORIZED_STATUS_CODES:
                raise UnauthorizedError(
                    what=f"{service} rejected the request",
                    cause=f"HTTP {resp.status_code}",
                    fix=f"Check the {service} API key in your credentials file",
                )

            if resp.status_code not in _RETRYABLE_STATUS_CODES:
                raise ProviderError(
                    what=f"{service} request failed",
                    cause=f"HTTP {resp.status_code}",
                    fix=f"Check {service} service status and request parameters",
                )

            backoff = compute_backoff(attempt)
            logger.error(
                "%s request failed (HTTP %d, attempt %d/%d), retrying in %.1fs...",
                service,
                resp.status_code,
                attempt + 1,
                _MAX_RETRIES,
                backoff,
            )
            if _pause(backoff, cancel_event):
                raise _cancelled(service)

        except ProviderError:
            raise
        except requests.RequestException as exc:
            last_exc = exc
            if attempt < _MAX_RETRIES - 1:
                backoff = compute_backoff(attempt)
                logger.error(
                    "%s request failed (%s, attempt %d/%d), retrying in %.1fs...",
                    service,
                    type(exc).__name__,
                    attempt + 1,
                    _MAX_RETRIES,
                    backoff,
                )
                if _pause(backoff, cancel_event):
                    raise _cancelled(service)

    if last_exc is not None:
        raise ProviderError(
            what=f"{service} request failed after retries",
            cause=str(last_exc),
            fix="Check internet connection and try again",
        ) from last_exc

    raise ProviderError(
        what=f"{service} request failed after retries",
        cause=f"HTTP {last_status} after {_MAX_RETRIES} retries",
        fix=f"Check {service} service status and try again later",
    )


async def run_cancellable(func: Callable[..., T], *args: Any) -> T:
    """Run blocking *func* in a worker thread that stops when cancelled.

    *func* receives a ``threading.Event`` as its last argument. The event
    is set when the awaiting coroutine is cancelled, so a worker that
    passes it to ``request_with_retry`` sends no further requests.
    """
    cancel_event = threading.Event()
    try:
        return await asyncio.to_thread(func, *args, cancel_event)
    except asyncio.CancelledError:
        cancel_event.set()
        raise


def parse_json(resp: requests.Response, *, service: str) -> Any:
    """Decode a JSON body, raising ``ProviderError`` on malformed content."""
    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderError(
            what=f"Invalid {service} response",
            cause=f"Response body is not valid JSON: {exc}",
            fix=f"Check {service} service status and try again later",
        ) from exc
