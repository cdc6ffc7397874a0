from __future__ import annotations
"""Pluggable HTTP request execution.

:class:`HTTPTransport` is the default and sends requests through botocore's
urllib3-backed session. Anything implementing :class:`Transport` can replace it,
which is how the tests drive the client without a network.
"""
import io
import logging
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from typing import BinaryIO, Mapping, Optional, Protocol, Union

from botocore.awsrequest import AWSRequest
from botocore.exceptions import BotoCoreError
from botocore.httpsession import URLLib3Session
from urllib3.exceptions import HTTPError

from .errors import TransportError

DIST_NAME = "pys3rest"

LOGGER = logging.getLogger(__name__)

Body = Union[bytes, BinaryIO, None]


def user_agent(dist_name: str = DIST_NAME) -> str:
    try:
        return f"{dist_name}/{version(dist_name)}"
    except PackageNotFoundError:
        return dist_name


@dataclass
class Response:
    """Status, headers and body of one HTTP exchange."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: BinaryIO = field(default_factory=io.BytesIO, repr=False)
    method: str = ""
    url: str = ""

    def header(self, name: str, default: str = "") -> str:
        value = self.headers.get(name)
        if value is None:
            lowered = name.lower()
            for key, candidate in self.headers.items():
                if key.lower() == lowered:
                    return candidate
            return default
        return value

    def read(self, limit: Optional[int] = None) -> bytes:
        """Read the body, reporting a dropped connection as :class:`TransportError`."""

        try:
            if limit is None:
                return self.body.read()
            return self.body.read(limit)
        except (HTTPError, OSError) as exc:
            raise TransportError(self.method, self.url, str(exc)) from exc

    def close(self) -> None:
        self.body.close()


class Transport(Protocol):
    """Executes a single HTTP request and returns its response."""

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        body: Body = None,
        stream: bool = False,
    ) -> Response:
        """Send the request.

        Raises:
            TransportError: when no response could be obtained.
        """
        ...


class HTTPTransport:
    """Default transport built on :class:`botocore.httpsession.URLLib3Session`."""

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        max_pool_connections: int = 10,
        verify: bool = True,
        session: Optional[URLLib3Session] = None,
    ):
        self._session = session or URLLib3Session(
            verify=verify,
            timeout=timeout,
            max_pool_connections=max_pool_connections,
        )
        self._user_agent = user_agent()

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        body: Body = None,
        stream: bool = False,
    ) -> Response:
        request_headers = {"User-Agent": self._user_agent}
        request_headers.update(headers or {})
        request = AWSRequest(
            method=method,
            url=url,
            headers=request_headers,
            data=body,
            stream_output=stream,
        )
        LOGGER.debug("%s %s", method, url)
        try:
            aws_response = self._session.send(request.prepare())
        except BotoCoreError as exc:
            raise TransportError(method, url, str(exc)) from exc

        if stream:
            response_body = aws_response.raw
        else:
            response_body = io.BytesIO(aws_response.content or b"")
        return Response(
            status_code=aws_response.status_code,
            headers=aws_response.headers,
            body=response_body,
            method=method,
            url=url,
        )

    def close(self) -> None:
        self._session.close()
