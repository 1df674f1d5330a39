"""
Outbound request construction for the DocumentDB REST API.

A ``ResourceRequest`` targets one resource link. It carries the
authentication headers, the query headers when the call sends a SQL query,
and any caller-supplied headers, which take precedence over the defaults.
"""

import json
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx
from pydantic import BaseModel

from documentdb.auth.masterkey import build_authorization_header, format_date
from documentdb.links import join_url, parse_link

HEADER_AUTH = "authorization"
HEADER_XDATE = "x-ms-date"
HEADER_VERSION = "x-ms-version"
HEADER_CONTENT_TYPE = "content-type"
HEADER_CONTENT_LENGTH = "content-length"
HEADER_IS_QUERY = "x-ms-documentdb-isquery"
HEADER_UPSERT = "x-ms-documentdb-is-upsert"
HEADER_IF_MATCH = "if-match"
HEADER_CONTINUATION = "x-ms-continuation"
HEADER_ACTIVITY_ID = "x-ms-activity-id"
HEADER_REQUEST_CHARGE = "x-ms-request-charge"

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_QUERY = "application/query+json"

DEFAULT_API_VERSION = "2017-02-22"


def stringify(body: Any) -> bytes:
    """
    Serialize a request body.

    Strings are UTF-8 encoded, bytes are sent as-is, resource models are
    serialized without their empty system fields, and everything else goes
    through ``json.dumps``.
    """
    if body is None:
        return b""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "to_payload"):
        return json.dumps(body.to_payload()).encode("utf-8")
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    return json.dumps(body).encode("utf-8")


def buffer_body(body: Any) -> bytes:
    """
    Read a request body fully so it can be re-sent on retry.

    Accepts bytes, str, file-like objects with ``read()`` and iterables of
    bytes chunks.
    """
    if body is None:
        return b""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "read"):
        data = body.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if isinstance(body, Iterable) and not isinstance(body, Mapping):
        return b"".join(bytes(chunk) for chunk in body)
    raise TypeError(f"Unsupported request body type: {type(body).__name__}")


class ResourceRequest:
    """
    Request for a single resource link.

    The resource id and type used for signing are derived from the link.
    """

    def __init__(
        self,
        method: str,
        link: str,
        url: str,
        body: Any = b"",
        headers: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize resource request.

        Args:
            method: HTTP method
            link: Resource link relative to the account endpoint
            url: Account endpoint the link is joined onto
            body: Request body
            headers: Caller-supplied headers

        Raises:
            ValueError: If the link does not name a known resource type
        """
        self.method = method.upper()
        self.link = link
        self.url = join_url(url, link)
        self.resource_id, self.resource_type = parse_link(link)
        self.body = body
        self.headers: Dict[str, str] = {}
        self._caller_headers: Dict[str, str] = {}
        if headers:
            self.merge_headers(headers)

    def default_headers(
        self,
        master_key: str,
        api_version: str = DEFAULT_API_VERSION,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Attach date, API version and authorization headers.

        Raises:
            InvalidMasterKeyError: If the master key is not valid base64
        """
        date = format_date(now)
        authorization = build_authorization_header(
            verb=self.method,
            resource_type=self.resource_type,
            resource_id=self.resource_id,
            date=date,
            master_key=master_key,
        )
        self._set_default(HEADER_XDATE, date)
        self._set_default(HEADER_VERSION, api_version)
        self._set_default(HEADER_AUTH, authorization)

    def query_headers(self, length: int, continuation: str = "") -> None:
        """
        Attach query headers.

        Args:
            length: Length of the serialized query body; 0 when the call is a
                plain feed read that only carries a continuation token
            continuation: Continuation token from the previous page
        """
        if length > 0:
            self._set_default(HEADER_CONTENT_TYPE, CONTENT_TYPE_QUERY)
            self._set_default(HEADER_IS_QUERY, "true")
            self._set_default(HEADER_CONTENT_LENGTH, str(length))
        if continuation:
            self._set_default(HEADER_CONTINUATION, continuation)

    def json_headers(self) -> None:
        """Mark the body as a JSON resource."""
        self._set_default(HEADER_CONTENT_TYPE, CONTENT_TYPE_JSON)

    def merge_headers(self, headers: Mapping[str, str]) -> None:
        """Merge caller-supplied headers. Caller values always win."""
        for name, value in headers.items():
            key = name.lower()
            self._caller_headers[key] = value
            self.headers[key] = value

    def _set_default(self, name: str, value: str) -> None:
        if name not in self._caller_headers:
            self.headers[name] = value

    def to_httpx(self, client: httpx.AsyncClient, content: bytes) -> httpx.Request:
        """Build a fresh ``httpx.Request`` over an already buffered body."""
        return client.build_request(
            self.method,
            self.url,
            headers=self.headers,
            content=content,
        )

    def __repr__(self) -> str:
        return f"ResourceRequest({self.method} {self.link!r} type={self.resource_type} id={self.resource_id!r})"
