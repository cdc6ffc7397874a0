from __future__ import annotations
"""S3 REST client: object access, bucket listing and location lookup."""
import base64
import logging
import threading
from typing import BinaryIO, Optional, Union

from .documents import decode_error, parse_list_all_my_buckets, parse_location_constraint
from .errors import InvalidArgumentError, ResponseParseError, S3Error
from .listing import ERROR_BODY_LIMIT, MAX_OBJECT_LIST, BucketLister
from .models import Bucket, Item, NotFound, ObjectBody, ObjectStat
from .settings import ClientSettings, RetryPolicy
from .transport import HTTPTransport, Response, Transport
from .urls import DEFAULT_HOSTNAME, URLBuilder, validate_hostname

LOGGER = logging.getLogger(__name__)

MD5_DIGEST_SIZE = 16


def _content_md5(md5) -> str:
    """Return the base64 ``Content-MD5`` value for a hash object or raw digest."""

    if isinstance(md5, (bytes, bytearray)):
        digest = bytes(md5)
    elif callable(getattr(md5, "digest", None)):
        digest = md5.digest()
    else:
        raise InvalidArgumentError(
            f"md5 must be a hash object or raw digest, not {type(md5).__name__}"
        )
    if not isinstance(digest, bytes) or len(digest) != MD5_DIGEST_SIZE:
        raise InvalidArgumentError("md5 digest must be 16 bytes")
    return base64.b64encode(digest).decode("ascii")


class S3RestClient:
    """Speaks the REST protocol of one S3-compatible endpoint.

    The client holds no per-call state and may be shared between threads.
    Every operation is a single blocking round trip except :meth:`get_bucket`,
    which may fetch and retry several pages.
    """

    def __init__(
        self,
        hostname: str = "",
        transport: Transport | None = None,
        *,
        secure: bool = False,
        retry: RetryPolicy | None = None,
        logger: logging.Logger | None = None,
    ):
        self._urls = URLBuilder(hostname, secure=secure)
        self._transport = transport or HTTPTransport()
        self._logger = logger or LOGGER
        self._lister = BucketLister(
            self._transport,
            self._urls,
            retry=retry,
            logger=self._logger,
        )

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        transport: Transport | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> "S3RestClient":
        if transport is None:
            transport = HTTPTransport(
                timeout=settings.timeout,
                max_pool_connections=settings.max_pool_connections,
            )
        return cls(
            settings.hostname,
            transport,
            secure=settings.secure,
            retry=settings.retry_policy(),
            logger=logger,
        )

    @property
    def hostname(self) -> str:
        return self._urls.hostname

    def close(self) -> None:
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "S3RestClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def list_buckets(self) -> list[Bucket]:
        """Return every bucket visible to the client."""

        response = self._transport.send("GET", self._urls.service_url())
        try:
            body = self._read_success(response, "ListBuckets", (200,))
        finally:
            response.close()
        return parse_list_all_my_buckets(body)

    def stat(self, bucket: str, key: str) -> Union[ObjectStat, NotFound]:
        """Return the size of an object, or :class:`NotFound` if it does not exist."""

        response = self._transport.send("HEAD", self._urls.key_url(bucket, key))
        try:
            if response.status_code == 404:
                return NotFound(bucket=bucket, key=key)
            self._read_success(response, "StatObject", (200,))
            raw_size = response.header("Content-Length")
        finally:
            response.close()
        try:
            size = int(raw_size)
        except ValueError as exc:
            raise ResponseParseError(f"invalid Content-Length: {raw_size!r}") from exc
        return ObjectStat(bucket=bucket, key=key, size=size)

    def get(self, bucket: str, key: str) -> Union[ObjectBody, NotFound]:
        """Open an object for reading. The returned body must be closed by the caller."""

        response = self._transport.send("GET", self._urls.key_url(bucket, key), stream=True)
        return self._open_body(response, bucket, key, "GetObject", (200,))

    def get_partial(
        self, bucket: str, key: str, offset: int, length: int = -1
    ) -> Union[ObjectBody, NotFound]:
        """Open ``length`` bytes of an object starting at ``offset``.

        A negative ``length`` reads to the end of the object. The returned body
        must be closed by the caller.
        """

        if offset < 0:
            raise InvalidArgumentError("invalid negative offset")
        if length >= 0:
            byte_range = f"bytes={offset}-{offset + length - 1}"
        else:
            byte_range = f"bytes={offset}-"
        response = self._transport.send(
            "GET",
            self._urls.key_url(bucket, key),
            headers={"Range": byte_range},
            stream=True,
        )
        return self._open_body(response, bucket, key, "GetObjectPartial", (200, 206))

    def put_bucket(self, bucket: str) -> None:
        """Create a bucket."""

        response = self._transport.send(
            "PUT", self._urls.bucket_url(bucket), headers={"Content-Length": "0"}
        )
        try:
            self._read_success(response, "PutBucket", (200,))
        finally:
            response.close()

    def put(
        self,
        bucket: str,
        key: str,
        body: Union[bytes, BinaryIO],
        size: int,
        md5=None,
    ) -> None:
        """Upload ``size`` bytes of ``body`` as an object.

        ``md5`` may be a hashlib ``md5`` object or its raw digest; when given it
        is sent as ``Content-MD5`` so the service can verify the upload.

        Raises:
            InvalidArgumentError: if ``size`` is negative or ``md5`` is not a
                hash object or 16-byte digest.
        """

        if size < 0:
            raise InvalidArgumentError("invalid negative size")
        headers = {"Content-Length": str(size)}
        if md5 is not None:
            headers["Content-MD5"] = _content_md5(md5)
        response = self._transport.send(
            "PUT", self._urls.key_url(bucket, key), headers=headers, body=body
        )
        try:
            self._read_success(response, "PutObject", (200,))
        finally:
            response.close()

    def get_bucket(
        self,
        bucket: str,
        start_key: str = "",
        max_keys: int = MAX_OBJECT_LIST,
        *,
        prefix: str = "",
        cancel_event: Optional[threading.Event] = None,
    ) -> list[Item]:
        """List up to ``max_keys`` keys of ``bucket`` starting at ``start_key``.

        See :meth:`BucketLister.list_items` for the retry and ordering rules.
        """

        return self._lister.list_items(
            bucket,
            start_key,
            max_keys,
            prefix=prefix,
            cancel_event=cancel_event,
        )

    def bucket_location(self, bucket: str, hostname: Optional[str] = None) -> str:
        """Return the hostname that serves ``bucket``.

        The location query goes to ``hostname`` (defaults to the client's). A
        bucket in the default region is served by ``localhost``; any other
        region maps to ``minio-<region>.<hostname>``.
        """

        host = self.hostname if hostname is None else validate_hostname(hostname)
        url = self._urls.bucket_url(bucket, "location", hostname=host)
        response = self._transport.send("GET", url)
        try:
            body = self._read_success(response, "GetBucketLocation", (200,))
        finally:
            response.close()
        location = parse_location_constraint(body)
        if not location:
            return DEFAULT_HOSTNAME
        return f"minio-{location}.{host}"

    def _open_body(
        self,
        response: Response,
        bucket: str,
        key: str,
        operation: str,
        accepted: tuple[int, ...],
    ) -> Union[ObjectBody, NotFound]:
        if response.status_code in accepted:
            raw_size = response.header("Content-Length")
            try:
                size = int(raw_size) if raw_size else -1
            except ValueError:
                size = -1
            return ObjectBody(
                bucket=bucket,
                key=key,
                stream=response.body,
                size=size,
                status=response.status_code,
            )
        try:
            if response.status_code == 404:
                return NotFound(bucket=bucket, key=key)
            raise self._error_for(response, operation)
        finally:
            response.close()

    def _read_success(
        self, response: Response, operation: str, accepted: tuple[int, ...]
    ) -> bytes:
        """Return the body of an accepted response or raise its decoded error."""

        if response.status_code in accepted:
            return response.read()
        raise self._error_for(response, operation)

    def _error_for(self, response: Response, operation: str) -> S3Error:
        self._logger.debug("%s failed with status %d", operation, response.status_code)
        return decode_error(
            operation,
            response.status_code,
            response.read(ERROR_BODY_LIMIT),
            response.headers,
            logger=self._logger,
        )
