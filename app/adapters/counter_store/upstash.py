"""Upstash Redis counter store adapter.

Talks to Upstash over its REST API: each Redis command is a JSON array posted
to the database URL, authenticated with a bearer token. Transactions go to
the ``/multi-exec`` endpoint and run as MULTI/EXEC on the server, which keeps
INCR and EXPIRE atomic together across every process sharing the database.

Failure policy:
- Reads (MGET) and deletes are idempotent: any transport error, timeouts
  included, is retried once after a short fixed backoff.
- The INCR transaction is retried only when the request never left the
  client (connect errors, connect or pool timeouts). After a read timeout
  the server may already have applied the increment, and a resend would
  count the request twice.
- Once retries are spent, transport errors surface as StoreUnavailableError.
- Upstream errors (5xx, 4xx, ``{"error": ...}`` payloads) surface immediately
  as StoreUnavailableError with a distinguishing code.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from app.adapters.counter_store.base import AbstractCounterStore
from app.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# One initial attempt plus one retry.
_MAX_ATTEMPTS = 2

# Failures raised before any byte of the request reached the server.
_NOT_SENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "counter_store.retry",
        extra={
            "attempt": retry_state.attempt_number,
            "error_type": type(exc).__name__ if exc else None,
        },
    )


def _build_retrying(
    retry_on: type[Exception] | tuple[type[Exception], ...],
    backoff_seconds: float,
) -> Retrying:
    return Retrying(
        stop=stop_after_attempt(_MAX_ATTEMPTS),
        wait=wait_fixed(backoff_seconds),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )


class UpstashCounterStore(AbstractCounterStore):
    """Counter store backed by Upstash Redis (REST API)."""

    def __init__(
        self,
        *,
        url: str,
        token: str,
        timeout_seconds: float = 2.0,
        retry_backoff_seconds: float = 0.1,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            url: Upstash database REST URL.
            token: Upstash REST token (sent as a bearer token).
            timeout_seconds: Timeout applied to every store call.
            retry_backoff_seconds: Pause before retrying a transport error.
            transport: Optional httpx transport (tests inject MockTransport).
        """
        self._client = httpx.Client(
            base_url=url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )
        self._retry_idempotent = _build_retrying(httpx.TransportError, retry_backoff_seconds)
        self._retry_increment = _build_retrying(_NOT_SENT_ERRORS, retry_backoff_seconds)

    def _post(self, path: str, body: list[Any]) -> Any:
        response = self._client.post(path, json=body)
        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> Any:
        if response.status_code >= 500:
            raise StoreUnavailableError(
                code="store_unavailable",
                message="Counter store returned a server error",
                details={"http_status": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreUnavailableError(
                code="store_error",
                message="Counter store returned a non-JSON response",
                details={"http_status": response.status_code},
            ) from exc

        if isinstance(payload, dict) and "error" in payload:
            code = "store_rejected" if response.status_code in (401, 403) else "store_error"
            raise StoreUnavailableError(
                code=code,
                message=f"Counter store error: {payload['error']}",
                details={"http_status": response.status_code},
            )

        if response.status_code >= 400:
            raise StoreUnavailableError(
                code="store_rejected",
                message="Counter store rejected the request",
                details={"http_status": response.status_code},
            )

        return payload

    def _execute(self, path: str, body: list[Any], retrying: Retrying) -> Any:
        """Send a command under ``retrying``, mapping transport failures."""
        try:
            return retrying(self._post, path, body)
        except httpx.TransportError as exc:
            attempts = retrying.statistics.get("attempt_number", 1)
            logger.error(
                "counter_store.unavailable",
                extra={
                    "error_type": type(exc).__name__,
                    "attempts": attempts,
                },
            )
            raise StoreUnavailableError(
                code="store_unavailable",
                message="Counter store is unreachable",
                details={"attempts": attempts},
            ) from exc

    @staticmethod
    def _unwrap(entry: Any) -> Any:
        if not isinstance(entry, dict):
            raise StoreUnavailableError(
                code="store_error",
                message="Counter store returned an unexpected payload",
            )
        if "error" in entry:
            raise StoreUnavailableError(
                code="store_error",
                message=f"Counter store error: {entry['error']}",
            )
        return entry.get("result")

    def increment_and_get(self, key: str, ttl_seconds: int) -> int:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        payload = self._execute(
            "/multi-exec",
            [["INCR", key], ["EXPIRE", key, str(ttl_seconds)]],
            self._retry_increment,
        )
        if not isinstance(payload, list) or len(payload) != 2:
            raise StoreUnavailableError(
                code="store_error",
                message="Counter store returned an unexpected transaction result",
            )
        value = self._unwrap(payload[0])
        self._unwrap(payload[1])
        return int(value)

    def get_many(self, keys: Sequence[str]) -> dict[str, int]:
        if not keys:
            return {}

        values = self._unwrap(self._execute("/", ["MGET", *keys], self._retry_idempotent))
        if not isinstance(values, list) or len(values) != len(keys):
            raise StoreUnavailableError(
                code="store_error",
                message="Counter store returned an unexpected MGET result",
            )
        return {key: int(value) if value is not None else 0 for key, value in zip(keys, values)}

    def delete(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        return int(self._unwrap(self._execute("/", ["DEL", *keys], self._retry_idempotent)))

    def close(self) -> None:
        self._client.close()
