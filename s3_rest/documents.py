from __future__ import annotations
"""XML document schemas and the error decoder.

Each document type is described by an explicit mapping from wire element names
to model fields instead of relying on the models' attribute names.
Elements are matched on their local name, so documents in the
``http://s3.amazonaws.com/doc/2006-03-01/`` namespace and bare documents decode
the same way.
"""
import binascii
import logging
from dataclasses import dataclass
from typing import Mapping, Optional
from xml.etree import ElementTree as ET

from .errors import ResponseParseError, S3Error
from .models import Bucket, ErrorDocument, Item, ListPage

SCHEMA_VERSION = "2006-03-01"

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentSchema:
    """Root element and element-to-field mapping of one XML document type."""

    root: str
    fields: Mapping[str, str]
    version: str = SCHEMA_VERSION


BUCKET_SCHEMA = DocumentSchema(
    root="Bucket",
    fields={"Name": "name", "CreationDate": "creation_date"},
)
LIST_ALL_MY_BUCKETS_SCHEMA = DocumentSchema(
    root="ListAllMyBucketsResult",
    fields={"Buckets": "buckets"},
)
ITEM_SCHEMA = DocumentSchema(
    root="Contents",
    fields={"Key": "key", "LastModified": "last_modified", "Size": "size"},
)
LIST_BUCKET_RESULT_SCHEMA = DocumentSchema(
    root="ListBucketResult",
    fields={
        "IsTruncated": "is_truncated",
        "MaxKeys": "max_keys",
        "Name": "name",
        "Marker": "marker",
        "Prefix": "prefix",
    },
)
ERROR_SCHEMA = DocumentSchema(
    root="Error",
    fields={
        "Code": "code",
        "Message": "message",
        "RequestId": "request_id",
        "Bucket": "bucket",
        "Endpoint": "endpoint",
        "StringToSignBytes": "string_to_sign_bytes",
    },
)
LOCATION_CONSTRAINT_SCHEMA = DocumentSchema(root="LocationConstraint", fields={})

TEMPORARY_REDIRECT = "TemporaryRedirect"
SIGNATURE_DOES_NOT_MATCH = "SignatureDoesNotMatch"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_root(body: bytes, schema: DocumentSchema) -> ET.Element:
    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise ResponseParseError(f"malformed {schema.root} document: {exc}") from exc
    if _local_name(root.tag) != schema.root:
        raise ResponseParseError(
            f"expected {schema.root} document, got {_local_name(root.tag)}"
        )
    return root


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _text_fields(element: ET.Element, schema: DocumentSchema) -> dict[str, str]:
    values: dict[str, str] = {}
    for child in element:
        field_name = schema.fields.get(_local_name(child.tag))
        if field_name is not None and field_name not in values:
            values[field_name] = (child.text or "").strip()
    return values


def _as_int(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ResponseParseError(f"invalid {what}: {value!r}") from exc


def _as_bool(value: str, what: str) -> bool:
    lowered = value.lower()
    if lowered in {"true", "1"}:
        return True
    if lowered in {"false", "0", ""}:
        return False
    raise ResponseParseError(f"invalid {what}: {value!r}")


def parse_list_all_my_buckets(body: bytes) -> list[Bucket]:
    """Decode a ``ListAllMyBucketsResult`` document.

    Raises:
        ResponseParseError: when the body is malformed or a bucket has no name.
    """

    root = _parse_root(body, LIST_ALL_MY_BUCKETS_SCHEMA)
    buckets: list[Bucket] = []
    for container in _children(root, "Buckets"):
        for element in _children(container, BUCKET_SCHEMA.root):
            values = _text_fields(element, BUCKET_SCHEMA)
            if not values.get("name"):
                raise ResponseParseError("Bucket element without a Name")
            buckets.append(
                Bucket(name=values["name"], creation_date=values.get("creation_date", ""))
            )
    return buckets


def parse_list_bucket_result(body: bytes) -> ListPage:
    """Decode a ``ListBucketResult`` page.

    Raises:
        ResponseParseError: when the body is not a well-formed listing page.
    """

    root = _parse_root(body, LIST_BUCKET_RESULT_SCHEMA)
    values = _text_fields(root, LIST_BUCKET_RESULT_SCHEMA)
    items = []
    for element in _children(root, ITEM_SCHEMA.root):
        item_values = _text_fields(element, ITEM_SCHEMA)
        items.append(
            Item(
                key=item_values.get("key", ""),
                last_modified=item_values.get("last_modified", ""),
                size=_as_int(item_values.get("size") or "0", "Size"),
            )
        )
    return ListPage(
        items=tuple(items),
        is_truncated=_as_bool(values.get("is_truncated", ""), "IsTruncated"),
        max_keys=_as_int(values.get("max_keys") or "0", "MaxKeys"),
        name=values.get("name", ""),
        marker=values.get("marker", ""),
        prefix=values.get("prefix", ""),
    )


def parse_location_constraint(body: bytes) -> str:
    """Return the region named by a ``LocationConstraint`` document ("" for the default)."""

    root = _parse_root(body, LOCATION_CONSTRAINT_SCHEMA)
    return (root.text or "").strip()


def parse_error_document(body: bytes) -> ErrorDocument:
    """Decode an ``<Error>`` body, returning empty fields when it is not one."""

    try:
        root = _parse_root(body, ERROR_SCHEMA)
    except ResponseParseError:
        return ErrorDocument()
    return ErrorDocument(**_text_fields(root, ERROR_SCHEMA))


def decode_string_to_sign(value: str) -> bytes:
    """Hex-decode the space separated ``StringToSignBytes`` diagnostic."""

    try:
        return binascii.unhexlify(value.replace(" ", ""))
    except (binascii.Error, ValueError):
        return b""


def decode_error(
    operation: str,
    status: int,
    body: bytes,
    headers: Optional[Mapping[str, str]] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> S3Error:
    """Build the :class:`S3Error` for a non-success response.

    Never raises: a body that is not an XML error document yields an error with
    empty decoded fields and the raw body preserved.
    """

    logger = logger or LOGGER
    document = parse_error_document(body)
    use_endpoint = document.endpoint if document.code == TEMPORARY_REDIRECT else ""
    if document.code == SIGNATURE_DOES_NOT_MATCH:
        expected = decode_string_to_sign(document.string_to_sign_bytes)
        logger.debug(
            "SignatureDoesNotMatch. StringToSign should be %d bytes: %r (%s)",
            len(expected),
            expected,
            expected.hex(),
        )
    return S3Error(
        operation,
        status,
        body,
        headers,
        code=document.code,
        message=document.message,
        request_id=document.request_id,
        bucket=document.bucket,
        use_endpoint=use_endpoint,
    )
