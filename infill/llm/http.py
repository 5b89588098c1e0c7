"""
Shared HTTP helpers for completion providers.

WHAT: One JSON request path used by every adapter, plus the configure-time probe
WHY: Backends differ in payloads, not in how failures and cancellation surface
HOW: A short-lived httpx.AsyncClient per call, non-2xx -> BackendError,
     transport failures -> NetworkError, caller signal via run_cancellable
"""

from typing import Any

import httpx

from .cancellation import CancellationSignal, run_cancellable
from ..core.config import settings
from ..utils.exceptions import BackendError, ConnectivityTestFailedError, NetworkError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def default_timeout(read: float | None = None) -> httpx.Timeout:
    return httpx.Timeout(
        settings.HTTP_CONNECT_TIMEOUT,
        read=read if read is not None else settings.HTTP_READ_TIMEOUT,
    )


def compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None so unset options are not sent."""
    return {key: value for key, value in payload.items() if value is not None}


async def request_json(
    method: str,
    url: str,
    *,
    action: str,
    payload: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    signal: CancellationSignal | None = None,
    timeout: httpx.Timeout | None = None,
) -> dict[str, Any]:
    """
    Send one JSON request and return the decoded JSON object.

    Args:
        method: HTTP method
        url: Absolute URL
        action: Short description used in error messages ("tokenize text")
        payload: JSON body, if any
        headers: Extra headers (auth)
        signal: Caller's cancellation signal
        timeout: Override for the default timeout

    Returns:
        Decoded JSON object

    Raises:
        BackendError: Non-2xx status or a body that is not a JSON object
        NetworkError: Backend not reachable or timed out
        CancellationError: signal fired before the response arrived
    """
    async def send() -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=timeout or default_timeout()) as client:
            response = await client.request(method, url, json=payload, headers=headers)

        if not response.is_success:
            body = response.text or "Unknown error"
            logger.error(f"Failed to {action}: HTTP {response.status_code} from {url}")
            raise BackendError(
                f"Failed to {action}: {response.status_code} {response.reason_phrase}\n{body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise BackendError(
                f"Failed to {action}: invalid response format",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(data, dict):
            logger.error(f"Expected a JSON object from {url}, got {type(data).__name__}")
            raise BackendError(
                f"Failed to {action}: invalid response format",
                status_code=response.status_code,
                body=response.text,
            )
        return data

    try:
        return await run_cancellable(send(), signal)
    except httpx.TimeoutException as e:
        logger.warning(f"Request to {url} timed out")
        raise NetworkError(f"Failed to {action}: request timed out", url=url) from e
    except httpx.TransportError as e:
        logger.warning(f"Request to {url} failed: {e}")
        raise NetworkError(f"Failed to {action}: {e}", url=url) from e


async def probe(
    url: str,
    payload: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
) -> None:
    """
    Connectivity test run by configure flows before anything is persisted.

    Raises:
        ConnectivityTestFailedError: Non-2xx status or transport failure
    """
    logger.debug("Testing connection credentials")
    try:
        async with httpx.AsyncClient(timeout=default_timeout(read=settings.PROBE_TIMEOUT)) as client:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.TransportError as e:
        raise ConnectivityTestFailedError(url, str(e) or type(e).__name__) from e

    if not response.is_success:
        raise ConnectivityTestFailedError(
            url,
            f"{response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )
    logger.info("Connection credentials test successful")
