"""
Request execution core.

The executor sends a ``ResourceRequest``, classifies the response and
retries throttled (429) or unavailable (503) responses with exponential
backoff. Backoff waits race the caller's cancellation token. The request
body is buffered once so every attempt re-sends identical bytes.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Optional

import httpx
from pydantic import PydanticUserError, TypeAdapter, ValidationError

from documentdb.client.backoff import BackoffPolicy
from documentdb.client.cancellation import CancellationToken
from documentdb.client.request import (
    HEADER_ACTIVITY_ID,
    HEADER_CONTINUATION,
    HEADER_IF_MATCH,
    HEADER_REQUEST_CHARGE,
    ResourceRequest,
    buffer_body,
)
from documentdb.core.logging_config import log_with_context
from documentdb.exceptions import (
    CancellationError,
    DecodeError,
    PreconditionFailedError,
    RequestError,
    RetriableServerError,
    TransportError,
)

if TYPE_CHECKING:
    from documentdb.core.config_manager import ClientConfig
    from documentdb.models import Query

logger = logging.getLogger(__name__)

RETRIABLE_STATUS_CODES = frozenset([429, 503])


@dataclass
class RequestContext:
    """State of one logical call.

    Created per call and discarded when the call returns. ``query``,
    ``collection`` and ``procedure`` only feed the response hook.
    """

    link: str
    method: str
    cancellation: Optional[CancellationToken] = None
    retry_count: int = 0
    query: Optional["Query"] = None
    collection: Optional[str] = None
    procedure: Optional[str] = None


@dataclass
class ExecutionResult:
    """Outcome of a successful call."""

    data: Any = None
    continuation: str = ""
    status_code: int = 200
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    @property
    def request_charge(self) -> float:
        try:
            return float(self.headers.get(HEADER_REQUEST_CHARGE, 0) or 0)
        except ValueError:
            return 0.0


class Executor:
    """Dispatches requests with retry, cancellation and JSON decoding."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: "ClientConfig",
        backoff: Optional[BackoffPolicy] = None,
    ):
        """
        Initialize executor.

        Args:
            http_client: Shared async HTTP client
            config: Client configuration (retry budget, hook, toggles)
            backoff: Backoff policy (built from ``config.backoff`` by default)
        """
        self._client = http_client
        self.config = config
        self.backoff = backoff or BackoffPolicy(
            ceiling=config.backoff.ceiling,
            min_window_ms=config.backoff.min_window_ms,
        )

    async def execute(
        self,
        request: ResourceRequest,
        target: Any = None,
        context: Optional[RequestContext] = None,
    ) -> ExecutionResult:
        """
        Execute a request until it succeeds, fails terminally or is cancelled.

        Args:
            request: Authenticated resource request
            target: Type to decode the JSON body into (None skips decoding)
            context: Per-call context; a fresh one is created when omitted

        Returns:
            ExecutionResult with decoded data and continuation token

        Raises:
            TransportError: Connection failure (not retried)
            CancellationError: Token fired before or during a backoff wait
            PreconditionFailedError: 412 response
            RequestError: Any other non-success response, including 429/503
                once the retry budget is spent
            DecodeError: Response body did not match ``target``, or
                ``target`` cannot be decoded into (raised before sending)
        """
        if context is None:
            context = RequestContext(link=request.link, method=request.method)

        adapter = None if target is None or target is Any else type_adapter(target)
        body = buffer_body(request.body)

        while True:
            self._check_cancelled(context)

            response = await self._send(request, body)
            try:
                self._observe(context, response)
                try:
                    self._check_response(context, request, response)
                except RetriableServerError as e:
                    log_with_context(
                        logger,
                        logging.WARNING,
                        f"{request.method} {request.link} returned {e.status_code}, retrying",
                        link=request.link,
                        status=e.status_code,
                        retry_count=context.retry_count,
                        max_retries=self.config.max_retries,
                        activity_id=response.headers.get(HEADER_ACTIVITY_ID),
                    )
                    await self._wait(context)
                    continue

                return self._result(response, target, adapter)
            finally:
                await response.aclose()

    async def _send(self, request: ResourceRequest, body: bytes) -> httpx.Response:
        http_request = request.to_httpx(self._client, body)
        if self.config.debug:
            logger.debug(f"--> {request.method} {http_request.url} ({len(body)} bytes)")
        try:
            response = await self._client.send(http_request)
        except httpx.DecodingError as e:
            logger.error(f"{request.method} {request.url} returned an undecodable body: {e}")
            raise DecodeError(f"Response body could not be decoded: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"{request.method} {request.url} failed: {e}")
            raise TransportError(str(e) or type(e).__name__, method=request.method, url=request.url) from e
        if self.config.debug:
            logger.debug(
                f"<-- {response.status_code} {request.method} {request.link} "
                f"activity={response.headers.get(HEADER_ACTIVITY_ID, '')}"
            )
        return response

    def _observe(self, context: RequestContext, response: httpx.Response) -> None:
        hook = self.config.response_hook
        if hook is None:
            return
        try:
            hook(context.method, response.headers.copy(), context)
        except Exception:
            logger.exception(f"Response hook failed for {context.method} {context.link}")

    def _check_response(
        self,
        context: RequestContext,
        request: ResourceRequest,
        response: httpx.Response,
    ) -> None:
        status = response.status_code

        if status in RETRIABLE_STATUS_CODES:
            context.retry_count += 1
            if context.retry_count <= self.config.max_retries:
                raise RetriableServerError(status, context.retry_count)
            logger.warning(
                f"{request.method} {request.link} exhausted {self.config.max_retries} retries"
            )

        if status == 412:
            raise PreconditionFailedError(
                f"Precondition failed for {request.method} {request.link}",
                etag=request.headers.get(HEADER_IF_MATCH, ""),
            )

        if status >= 300:
            error = RequestError.from_payload(status, _read_error_body(response))
            log_with_context(
                logger,
                logging.INFO if status < 500 else logging.ERROR,
                f"{request.method} {request.link} failed: {error}",
                link=request.link,
                status=status,
                code=error.code,
                activity_id=response.headers.get(HEADER_ACTIVITY_ID),
            )
            raise error

    async def _wait(self, context: RequestContext) -> None:
        delay = self.backoff.delay(context.retry_count)
        token = context.cancellation

        if token is None or self.config.ignore_cancellation:
            await asyncio.sleep(delay)
            return

        if await token.wait(delay):
            raise CancellationError(token.reason or "operation cancelled", retry_count=context.retry_count)

    def _check_cancelled(self, context: RequestContext) -> None:
        token = context.cancellation
        if token is None or self.config.ignore_cancellation:
            return
        if token.cancelled:
            raise CancellationError(token.reason or "operation cancelled", retry_count=context.retry_count)

    def _result(
        self,
        response: httpx.Response,
        target: Any,
        adapter: Optional[TypeAdapter] = None,
    ) -> ExecutionResult:
        result = ExecutionResult(
            continuation=response.headers.get(HEADER_CONTINUATION, ""),
            status_code=response.status_code,
            headers=response.headers,
        )
        if target is None:
            return result
        result.data = decode(response, target, adapter)
        return result


@lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def type_adapter(target: Any) -> TypeAdapter:
    """
    Return the validator for ``target``, cached per hashable type.

    Raises:
        DecodeError: If pydantic cannot build a schema for ``target``
    """
    try:
        hash(target)
    except TypeError:
        build = TypeAdapter
    else:
        build = _cached_adapter
    try:
        return build(target)
    except PydanticUserError as e:
        raise DecodeError(f"Cannot decode into {getattr(target, '__name__', target)}: {e}") from e


def decode(response: httpx.Response, target: Any, adapter: Optional[TypeAdapter] = None) -> Any:
    """
    Decode a JSON response body into ``target``.

    Raises:
        DecodeError: If the body is not JSON or does not validate
    """
    try:
        payload = json.loads(response.content or b"null")
    except ValueError as e:
        raise DecodeError(f"Response body is not valid JSON: {e}", response.status_code) from e

    if target is Any:
        return payload

    try:
        return (adapter or type_adapter(target)).validate_python(payload)
    except ValidationError as e:
        raise DecodeError(
            f"Response body does not match {getattr(target, '__name__', target)}: {e}",
            response.status_code,
        ) from e


def _read_error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
