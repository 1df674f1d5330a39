"""
Tests for the resource-level client.
"""

import json
import base64
from typing import List

import httpx
import pytest
from unittest.mock import MagicMock

from documentdb.auth import InvalidMasterKeyError
from documentdb.client.http_client import Client
from documentdb.core.config_manager import ClientConfig
from documentdb.models import Database, DocumentList, Query


MASTER_KEY = base64.b64encode(b"client-test-key").decode()


class Capture:
    """Mock transport handler recording requests."""

    def __init__(self, status_code: int = 200, payload=None, headers=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.headers = headers or {}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload, headers=self.headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(handler, url: str = "https://x/", **config_overrides) -> Client:
    config = ClientConfig(url=url, master_key=MASTER_KEY, **config_overrides)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Client(config, http_client=http_client)


class TestClientQuery:
    """Tests for reads and queries."""

    @pytest.mark.asyncio
    async def test_url_composition(self):
        """Test base URL and feed link join with a single separator."""
        capture = Capture(payload={"DocumentCollections": [], "_count": 0})
        client = make_client(capture, url="https://x/")

        await client.query("dbs/abc/colls/")

        assert str(capture.last.url) == "https://x/dbs/abc/colls/"

    @pytest.mark.asyncio
    async def test_read_without_query_is_get(self):
        """Test a read by link is a GET without a body."""
        capture = Capture(payload={"id": "db1", "_self": "dbs/abc/"})
        client = make_client(capture)

        result = await client.query("dbs/abc/", None, Database)

        assert capture.last.method == "GET"
        assert capture.last.content == b""
        assert "x-ms-documentdb-isquery" not in capture.last.headers
        assert result.data.id == "db1"

    @pytest.mark.asyncio
    async def test_query_is_post(self):
        """Test a query with text is POSTed as application/query+json."""
        capture = Capture(
            payload={"Documents": [{"id": "foo"}], "_count": 1},
            headers={"x-ms-continuation": "next"},
        )
        client = make_client(capture)
        query = Query.new("SELECT * FROM root r WHERE r.id = @id", {"@id": "foo"}, token="prev")

        result = await client.query("dbs/abc/colls/xyz/docs/", query, DocumentList)

        request = capture.last
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/query+json"
        assert request.headers["x-ms-documentdb-isquery"] == "true"
        assert request.headers["x-ms-continuation"] == "prev"
        assert json.loads(request.content) == {
            "query": "SELECT * FROM root r WHERE r.id = @id",
            "parameters": [{"name": "@id", "value": "foo"}],
        }
        assert result.data.documents == [{"id": "foo"}]
        assert result.continuation == "next"

    @pytest.mark.asyncio
    async def test_token_only_query_is_get(self):
        """Test a query without text reads the feed with the continuation header."""
        capture = Capture(payload={"Documents": [], "_count": 0})
        client = make_client(capture)

        await client.query("dbs/abc/colls/xyz/docs/", Query(token="page-2"), DocumentList)

        assert capture.last.method == "GET"
        assert capture.last.headers["x-ms-continuation"] == "page-2"

    @pytest.mark.asyncio
    async def test_signed_headers_present(self):
        """Test every request carries date, version and authorization."""
        capture = Capture()
        client = make_client(capture, api_version="2018-12-31")

        await client.query("dbs")

        headers = capture.last.headers
        assert headers["x-ms-version"] == "2018-12-31"
        assert headers["x-ms-date"].endswith("GMT")
        assert headers["authorization"].startswith("type%3Dmaster")

    @pytest.mark.asyncio
    async def test_invalid_master_key_fails_before_send(self):
        """Test a malformed key raises before any request is sent."""
        capture = Capture()
        config = ClientConfig(url="https://x", master_key="%%%")
        client = Client(config, http_client=httpx.AsyncClient(transport=httpx.MockTransport(capture)))

        with pytest.raises(InvalidMasterKeyError):
            await client.query("dbs")

        assert capture.requests == []


class TestClientWrites:
    """Tests for create, replace, execute and delete."""

    @pytest.mark.asyncio
    async def test_create(self):
        """Test create POSTs the JSON body to the feed link."""
        capture = Capture(status_code=201, payload={"id": "db1"})
        client = make_client(capture)

        result = await client.create("dbs", {"id": "db1"}, Database)

        assert capture.last.method == "POST"
        assert capture.last.headers["content-type"] == "application/json"
        assert json.loads(capture.last.content) == {"id": "db1"}
        assert result.status_code == 201
        assert result.data.id == "db1"

    @pytest.mark.asyncio
    async def test_create_with_caller_headers(self):
        """Test caller headers such as the upsert flag are sent."""
        capture = Capture(status_code=201, payload={"id": "d1"})
        client = make_client(capture)

        await client.create(
            "dbs/abc/colls/xyz/docs/",
            {"id": "d1"},
            headers={"x-ms-documentdb-is-upsert": "true"},
        )

        assert capture.last.headers["x-ms-documentdb-is-upsert"] == "true"

    @pytest.mark.asyncio
    async def test_replace(self):
        """Test replace PUTs to the self link."""
        capture = Capture(payload={"id": "d1"})
        client = make_client(capture)

        await client.replace("dbs/abc/colls/xyz/docs/d1/", '{"id": "d1"}', headers={"If-Match": "e1"})

        assert capture.last.method == "PUT"
        assert capture.last.headers["if-match"] == "e1"
        assert capture.last.content == b'{"id": "d1"}'

    @pytest.mark.asyncio
    async def test_execute(self):
        """Test stored procedure execution POSTs the arguments."""
        capture = Capture(payload={"ok": True})
        client = make_client(capture)

        result = await client.execute("dbs/abc/colls/xyz/sprocs/sp1/", ["a", 1], dict)

        assert capture.last.method == "POST"
        assert json.loads(capture.last.content) == ["a", 1]
        assert result.data == {"ok": True}

    @pytest.mark.asyncio
    async def test_delete(self):
        """Test delete sends DELETE with the given headers."""
        capture = Capture(status_code=204)
        client = make_client(capture)

        result = await client.delete("dbs/abc/colls/xyz/docs/d1/", headers={"If-Match": "e1"})

        assert capture.last.method == "DELETE"
        assert capture.last.headers["if-match"] == "e1"
        assert result.data is None

    @pytest.mark.asyncio
    async def test_correlation_reaches_hook(self):
        """Test collection and procedure ids are passed to the response hook."""
        hook = MagicMock()
        client = make_client(Capture(payload={}), response_hook=hook)

        await client.execute("dbs/abc/colls/xyz/sprocs/sp1/", None, collection="orders", procedure="sp1")

        context = hook.call_args.args[2]
        assert context.collection == "orders"
        assert context.procedure == "sp1"
        assert context.method == "POST"


class TestClientLifecycle:
    """Tests for HTTP client ownership."""

    @pytest.mark.asyncio
    async def test_borrowed_client_left_open(self):
        """Test a caller-supplied HTTP client is not closed."""
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(Capture()))
        client = Client(ClientConfig(url="https://x", master_key=MASTER_KEY), http_client=http_client)

        await client.aclose()

        assert http_client.is_closed is False
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        """Test an internally created HTTP client is closed on exit."""
        async with Client(ClientConfig(url="https://x", master_key=MASTER_KEY)) as client:
            assert client.url == "https://x"

        assert client._http.is_closed is True
