from __future__ import annotations
"""Paginated bucket listing with retry and backoff."""
import logging
import threading
import time
from typing import Callable, Optional

from .documents import decode_error, parse_list_bucket_result
from .errors import (
    InvalidArgumentError,
    ListingCancelledError,
    ListingValidationError,
    ProtocolIntegrityError,
    ResponseParseError,
    RetriesExhaustedError,
    TransportError,
)
from .models import Item, ListPage
from .settings import RetryPolicy
from .transport import Transport
from .urls import URLBuilder

MAX_OBJECT_LIST = 1000
ERROR_BODY_LIMIT = 1 << 20
OPERATION = "ListBucket"

LOGGER = logging.getLogger(__name__)


class BucketLister:
    """Enumerates the keys of a bucket across as many pages as needed.

    Each page is fetched with up to ``retry.max_attempts`` attempts. Transport
    failures, 5xx responses and pages that fail to decode or echo the wrong
    request values are retried; any other non-success status aborts at once.
    The error reported after the last attempt is that attempt's error.
    """

    def __init__(
        self,
        transport: Transport,
        urls: URLBuilder,
        *,
        retry: Optional[RetryPolicy] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._transport = transport
        self._urls = urls
        self._retry = retry or RetryPolicy()
        self._logger = logger or LOGGER
        self._sleep = sleep

    def list_items(
        self,
        bucket: str,
        start_key: str = "",
        max_keys: int = MAX_OBJECT_LIST,
        *,
        prefix: str = "",
        cancel_event: Optional[threading.Event] = None,
    ) -> list[Item]:
        """Return up to ``max_keys`` items sorting at or after ``start_key``.

        When exactly ``max_keys`` items come back there is no indication whether
        the bucket holds more.

        Raises:
            InvalidArgumentError: if ``max_keys`` is negative.
            S3Error: on a non-retryable error response.
            ProtocolIntegrityError: if the service returns a key before ``start_key``,
                keys out of order, or a truncated page without new keys.
            RetriesExhaustedError: when a page could not be fetched within the retry budget.
            ListingCancelledError: when ``cancel_event`` is set.
        """

        if max_keys < 0:
            raise InvalidArgumentError("invalid negative max_keys")

        items: list[Item] = []
        marker = start_key
        while len(items) < max_keys:
            fetch_n = min(max_keys - len(items), MAX_OBJECT_LIST)
            page = self._fetch_page(bucket, marker, fetch_n, prefix, cancel_event)
            accepted = len(items)
            for index, item in enumerate(page.items):
                if index == 0 and items and item.key == marker:
                    # Pages after the first repeat the previous page's last key.
                    continue
                if item.key < start_key:
                    raise ProtocolIntegrityError(
                        f"item key {item.key!r} sorts before start key {start_key!r}"
                    )
                if items and item.key <= items[-1].key:
                    raise ProtocolIntegrityError(
                        f"item key {item.key!r} does not sort after {items[-1].key!r}"
                    )
                items.append(item)
                marker = item.key
            if not page.is_truncated:
                break
            if len(items) == accepted:
                raise ProtocolIntegrityError(
                    f"truncated page after marker {marker!r} returned no new keys"
                )
        return items

    def _fetch_page(
        self,
        bucket: str,
        marker: str,
        fetch_n: int,
        prefix: str,
        cancel_event: Optional[threading.Event],
    ) -> ListPage:
        query = {"marker": marker, "max-keys": fetch_n}
        if prefix:
            query["prefix"] = prefix
        url = self._urls.bucket_url(bucket, query)

        last_error: Optional[Exception] = None
        attempts = self._retry.max_attempts
        for attempt in range(1, attempts + 1):
            self._backoff(attempt, cancel_event)
            try:
                response = self._transport.send("GET", url)
            except TransportError as exc:
                last_error = exc
                self._log_retry(attempt, exc)
                continue
            try:
                if response.status_code != 200:
                    error = decode_error(
                        OPERATION,
                        response.status_code,
                        response.read(ERROR_BODY_LIMIT),
                        response.headers,
                        logger=self._logger,
                    )
                    if response.status_code < 500:
                        raise error
                    last_error = error
                    self._log_retry(attempt, error)
                    continue
                body = response.read()
            except TransportError as exc:
                last_error = exc
                self._log_retry(attempt, exc)
                continue
            finally:
                response.close()

            try:
                page = parse_list_bucket_result(body)
                self._validate(page, bucket, marker, fetch_n, prefix)
            except (ResponseParseError, ListingValidationError) as exc:
                last_error = exc
                self._logger.debug("Rejected listing body: %r", body)
                self._log_retry(attempt, exc)
                continue
            return page

        raise RetriesExhaustedError(OPERATION, attempts, last_error) from last_error

    def _backoff(self, attempt: int, cancel_event: Optional[threading.Event]) -> None:
        delay = self._retry.delay_before(attempt)
        if cancel_event is not None:
            if delay > 0:
                cancel_event.wait(delay)
            if cancel_event.is_set():
                raise ListingCancelledError("bucket listing cancelled")
        elif delay > 0:
            self._sleep(delay)

    def _log_retry(self, attempt: int, error: Exception) -> None:
        if attempt < self._retry.max_attempts:
            self._logger.warning(
                "%s attempt %d/%d failed, retrying: %s",
                OPERATION,
                attempt,
                self._retry.max_attempts,
                error,
            )
        else:
            self._logger.error(
                "%s attempt %d/%d failed, giving up: %s",
                OPERATION,
                attempt,
                self._retry.max_attempts,
                error,
            )

    @staticmethod
    def _validate(page: ListPage, bucket: str, marker: str, fetch_n: int, prefix: str) -> None:
        if page.max_keys != fetch_n or page.name != bucket or page.marker != marker:
            raise ListingValidationError(
                f"unexpected listing echo: max_keys={page.max_keys} name={page.name!r} "
                f"marker={page.marker!r}; requested max_keys={fetch_n} name={bucket!r} "
                f"marker={marker!r}"
            )
        if prefix and page.prefix != prefix:
            raise ListingValidationError(
                f"unexpected listing prefix {page.prefix!r}; requested {prefix!r}"
            )
