"""
Resource-level DocumentDB client.

Maps the five REST verbs the API uses onto the executor: read or query
(GET/POST), create (POST), replace (PUT), execute a stored procedure (POST)
and delete (DELETE). Every call builds its own ``RequestContext``.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from documentdb.client.cancellation import CancellationToken
from documentdb.client.executor import ExecutionResult, Executor, RequestContext
from documentdb.client.request import ResourceRequest, stringify
from documentdb.core.config_manager import ClientConfig
from documentdb.models import Query

logger = logging.getLogger(__name__)


class Client:
    """
    Thin async client over one shared ``httpx.AsyncClient``.

    The HTTP client is created on demand and closed by ``aclose()``. A
    client passed in by the caller is borrowed and left open.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize client.

        Args:
            config: Client configuration (endpoint, master key, retry budget)
            http_client: Shared HTTP client to borrow instead of creating one
            executor: Executor to use (built over the HTTP client by default)
        """
        self.config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout)
        self.executor = executor or Executor(self._http, config)

    @property
    def url(self) -> str:
        return self.config.url

    async def query(
        self,
        link: str,
        query: Optional[Query] = None,
        target: Any = None,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
        procedure: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Read a resource or feed by link, or run a SQL query against a feed.

        A query with text is sent as a POST with the query body. Without
        text the call is a plain GET that still echoes the query's
        continuation token.

        Args:
            link: Resource or feed link
            query: Optional query and continuation token
            target: Type the response body is decoded into
            cancellation: Token aborting the call during backoff waits
            collection: Collection id passed to the response hook
            procedure: Stored procedure id passed to the response hook

        Returns:
            ExecutionResult with the decoded body and the next continuation token
        """
        method = "GET"
        body = b""
        if query is not None and query.text:
            method = "POST"
            body = query.to_body()

        request = self._request(method, link, body)
        request.query_headers(len(body), query.token if query is not None else "")

        context = RequestContext(
            link=link,
            method=method,
            cancellation=cancellation,
            query=query,
            collection=collection,
            procedure=procedure,
        )
        return await self.executor.execute(request, target, context)

    async def create(
        self,
        link: str,
        body: Any,
        target: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
        procedure: Optional[str] = None,
    ) -> ExecutionResult:
        """Create a resource under a feed link (POST)."""
        return await self._send_body(
            "POST", link, body, target, headers, cancellation, collection, procedure
        )

    async def replace(
        self,
        link: str,
        body: Any,
        target: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
        procedure: Optional[str] = None,
    ) -> ExecutionResult:
        """Replace the resource at a self link (PUT)."""
        return await self._send_body(
            "PUT", link, body, target, headers, cancellation, collection, procedure
        )

    async def execute(
        self,
        link: str,
        body: Any,
        target: Any = None,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
        procedure: Optional[str] = None,
    ) -> ExecutionResult:
        """Execute the stored procedure at a self link with ``body`` as its arguments."""
        return await self._send_body(
            "POST", link, body, target, None, cancellation, collection, procedure
        )

    async def delete(
        self,
        link: str,
        headers: Optional[Mapping[str, str]] = None,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
        procedure: Optional[str] = None,
    ) -> ExecutionResult:
        """Delete the resource at a self link."""
        request = self._request("DELETE", link, b"", headers)
        context = RequestContext(
            link=link,
            method="DELETE",
            cancellation=cancellation,
            collection=collection,
            procedure=procedure,
        )
        return await self.executor.execute(request, None, context)

    async def _send_body(
        self,
        method: str,
        link: str,
        body: Any,
        target: Any,
        headers: Optional[Mapping[str, str]],
        cancellation: Optional[CancellationToken],
        collection: Optional[str],
        procedure: Optional[str],
    ) -> ExecutionResult:
        request = self._request(method, link, stringify(body), headers)
        request.json_headers()
        context = RequestContext(
            link=link,
            method=method,
            cancellation=cancellation,
            collection=collection,
            procedure=procedure,
        )
        return await self.executor.execute(request, target, context)

    def _request(
        self,
        method: str,
        link: str,
        body: bytes,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ResourceRequest:
        request = ResourceRequest(method, link, self.config.url, body=body, headers=headers)
        request.default_headers(self.config.master_key, self.config.api_version)
        return request

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()
            logger.debug("Closed DocumentDB HTTP client")

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
