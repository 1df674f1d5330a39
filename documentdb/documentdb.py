"""
High-level DocumentDB API.

``DocumentDB`` exposes read, query, create, replace, delete and execute
operations per resource type, addressed by self links. The proxies
(``DatabaseProxy``, ``CollectionProxy``, ``StoredProcedureProxy``) wrap a
resource together with the API so callers can walk the hierarchy by id.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from documentdb.client.cancellation import CancellationToken
from documentdb.client.executor import type_adapter
from documentdb.client.http_client import Client
from documentdb.client.request import HEADER_IF_MATCH, HEADER_UPSERT
from documentdb.core.config_manager import ClientConfig
from documentdb.exceptions import DecodeError, NotFoundError, RequestError, is_exists
from documentdb.links import (
    DATABASES_LINK,
    collections_link,
    documents_link,
    stored_procedures_link,
    user_defined_functions_link,
)
from documentdb.models import (
    Collection,
    CollectionList,
    Database,
    DatabaseList,
    Document,
    DocumentList,
    Query,
    StoredProcedure,
    StoredProcedureList,
    UserDefinedFunction,
    UserDefinedFunctionList,
    document_id,
    ensure_id,
    id_query,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DocumentDB",
    "DatabaseProxy",
    "CollectionProxy",
    "StoredProcedureProxy",
    "is_exists",
]


def _etag_headers(etag: str, **headers: str) -> Dict[str, str]:
    if etag:
        headers[HEADER_IF_MATCH] = etag
    return headers


def _items_adapter(target: Any) -> Optional[TypeAdapter]:
    if target is Any or target is dict:
        return None
    return type_adapter(List[target])


def _convert(items: List[Dict[str, Any]], target: Any, adapter: Optional[TypeAdapter]) -> List[Any]:
    """Validate raw feed items against the caller's document type."""
    if adapter is None:
        return items
    try:
        return adapter.validate_python(items)
    except ValidationError as e:
        raise DecodeError(f"Documents do not match {getattr(target, '__name__', target)}: {e}") from e


class DocumentDB:
    """
    DocumentDB API client.

    Example:
        async with DocumentDB("https://account.documents.azure.com", config) as db:
            docs, token = await db.query_documents(coll_link, Query.new("SELECT * FROM root"))
    """

    def __init__(
        self,
        url: str = "",
        config: Optional[ClientConfig] = None,
        client: Optional[Client] = None,
    ):
        """
        Initialize the API client.

        Args:
            url: Account endpoint; overrides ``config.url`` when given
            config: Client configuration (defaults used when omitted)
            client: Resource-level client to use instead of building one
        """
        config = config or ClientConfig()
        if url:
            config = config.model_copy(update={"url": url.strip().strip("/")})
        self.config = config
        self.client = client or Client(config)

    @classmethod
    def from_config(cls, config: ClientConfig) -> "DocumentDB":
        return cls(config=config)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "DocumentDB":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ========== Read by self link ==========

    async def read_database(self, link: str, cancellation: Optional[CancellationToken] = None) -> Database:
        result = await self.client.query(link, None, Database, cancellation=cancellation)
        return result.data

    async def read_collection(self, link: str, cancellation: Optional[CancellationToken] = None) -> Collection:
        result = await self.client.query(link, None, Collection, cancellation=cancellation)
        return result.data

    async def read_document(
        self,
        link: str,
        target: Any = Document,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Read a document by self link.

        Args:
            link: Document self link
            target: Type to decode into (``Document`` subclasses, dict, ...)
            cancellation: Token aborting the call during backoff waits
        """
        result = await self.client.query(link, None, target, cancellation=cancellation)
        return result.data

    async def read_stored_procedure(
        self, link: str, cancellation: Optional[CancellationToken] = None
    ) -> StoredProcedure:
        result = await self.client.query(link, None, StoredProcedure, cancellation=cancellation)
        return result.data

    async def read_user_defined_function(
        self, link: str, cancellation: Optional[CancellationToken] = None
    ) -> UserDefinedFunction:
        result = await self.client.query(link, None, UserDefinedFunction, cancellation=cancellation)
        return result.data

    # ========== Read feeds ==========

    async def read_databases(self, cancellation: Optional[CancellationToken] = None) -> List[Database]:
        return await self.query_databases(None, cancellation=cancellation)

    async def read_collections(
        self, database_link: str, cancellation: Optional[CancellationToken] = None
    ) -> List[Collection]:
        return await self.query_collections(database_link, None, cancellation=cancellation)

    async def read_stored_procedures(
        self, collection_link: str, cancellation: Optional[CancellationToken] = None
    ) -> List[StoredProcedure]:
        return await self.query_stored_procedures(collection_link, None, cancellation=cancellation)

    async def read_user_defined_functions(
        self, collection_link: str, cancellation: Optional[CancellationToken] = None
    ) -> List[UserDefinedFunction]:
        return await self.query_user_defined_functions(collection_link, None, cancellation=cancellation)

    async def read_documents(
        self,
        collection_link: str,
        continuation: str = "",
        target: Any = Document,
        cancellation: Optional[CancellationToken] = None,
    ) -> Tuple[List[Any], str]:
        """
        Read one page of a collection's documents.

        Args:
            collection_link: Collection self link
            continuation: Token returned by the previous page
            target: Document type

        Returns:
            Tuple of (documents, continuation token for the next page)
        """
        query = Query(token=continuation) if continuation else None
        return await self.query_documents(collection_link, query, target, cancellation=cancellation)

    # ========== Queries ==========

    async def query_databases(
        self, query: Optional[Query], cancellation: Optional[CancellationToken] = None
    ) -> List[Database]:
        result = await self.client.query(DATABASES_LINK, query, DatabaseList, cancellation=cancellation)
        return result.data.databases

    async def query_collections(
        self,
        database_link: str,
        query: Optional[Query],
        cancellation: Optional[CancellationToken] = None,
    ) -> List[Collection]:
        result = await self.client.query(
            collections_link(database_link), query, CollectionList, cancellation=cancellation
        )
        return result.data.collections

    async def query_stored_procedures(
        self,
        collection_link: str,
        query: Optional[Query],
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> List[StoredProcedure]:
        result = await self.client.query(
            stored_procedures_link(collection_link),
            query,
            StoredProcedureList,
            cancellation=cancellation,
            collection=collection,
        )
        return result.data.stored_procedures

    async def query_user_defined_functions(
        self,
        collection_link: str,
        query: Optional[Query],
        cancellation: Optional[CancellationToken] = None,
    ) -> List[UserDefinedFunction]:
        result = await self.client.query(
            user_defined_functions_link(collection_link),
            query,
            UserDefinedFunctionList,
            cancellation=cancellation,
        )
        return result.data.user_defined_functions

    async def query_documents(
        self,
        collection_link: str,
        query: Optional[Query],
        target: Any = Document,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> Tuple[List[Any], str]:
        """
        Query a collection's documents.

        Args:
            collection_link: Collection self link
            query: SQL query (None reads the feed)
            target: Document type each item is validated against
            cancellation: Token aborting the call during backoff waits
            collection: Collection id passed to the response hook

        Returns:
            Tuple of (documents, continuation token for the next page)

        Raises:
            DecodeError: If an item does not match ``target``, or ``target``
                is not a decodable type (raised before the request is sent)
        """
        adapter = _items_adapter(target)
        result = await self.client.query(
            documents_link(collection_link),
            query,
            DocumentList,
            cancellation=cancellation,
            collection=collection,
        )
        return _convert(result.data.documents, target, adapter), result.continuation

    # ========== Create ==========

    async def create_database(
        self, body: Any, cancellation: Optional[CancellationToken] = None
    ) -> Database:
        result = await self.client.create(DATABASES_LINK, body, Database, cancellation=cancellation)
        return result.data

    async def create_collection(
        self,
        database_link: str,
        body: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> Collection:
        result = await self.client.create(
            collections_link(database_link), body, Collection, cancellation=cancellation
        )
        return result.data

    async def create_stored_procedure(
        self,
        collection_link: str,
        body: Any,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> StoredProcedure:
        result = await self.client.create(
            stored_procedures_link(collection_link),
            body,
            StoredProcedure,
            cancellation=cancellation,
            collection=collection,
        )
        return result.data

    async def create_user_defined_function(
        self,
        collection_link: str,
        body: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> UserDefinedFunction:
        result = await self.client.create(
            user_defined_functions_link(collection_link),
            body,
            UserDefinedFunction,
            cancellation=cancellation,
        )
        return result.data

    async def create_document(
        self,
        collection_link: str,
        doc: Any,
        headers: Optional[Mapping[str, str]] = None,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> Document:
        """
        Create a document, generating an id when it has none.

        Args:
            collection_link: Collection self link
            doc: ``Identifiable`` object, dict or any JSON-serializable body
            headers: Extra request headers
        """
        ensure_id(doc)
        result = await self.client.create(
            documents_link(collection_link),
            doc,
            Document,
            headers=headers,
            cancellation=cancellation,
            collection=collection,
        )
        return result.data

    async def update_document(
        self,
        collection_link: str,
        doc: Any,
        etag: str = "",
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> Document:
        """
        Replace a document found by its id.

        Args:
            collection_link: Collection self link
            doc: Document carrying a non-empty id
            etag: Sent as ``If-Match`` when given

        Raises:
            ValueError: If the document has no id
            NotFoundError: If no document with that id exists
        """
        doc_id = document_id(doc)
        if not doc_id:
            raise ValueError("document doesn't have id")

        docs, _ = await self.query_documents(
            collection_link, id_query(doc_id), cancellation=cancellation, collection=collection
        )
        if not docs:
            raise NotFoundError(f"Document '{doc_id}' not found", resource_id=doc_id)

        return await self.replace_document(
            docs[0].self_link,
            doc,
            _etag_headers(etag),
            cancellation=cancellation,
            collection=collection,
        )

    async def upsert_document(
        self,
        collection_link: str,
        doc: Any,
        etag: str = "",
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> Document:
        """Create or replace a document (``x-ms-documentdb-is-upsert``)."""
        headers = _etag_headers(etag, **{HEADER_UPSERT: "true"})
        return await self.create_document(
            collection_link, doc, headers, cancellation=cancellation, collection=collection
        )

    # ========== Replace ==========

    async def replace_database(
        self, link: str, body: Any, cancellation: Optional[CancellationToken] = None
    ) -> Database:
        result = await self.client.replace(link, body, Database, cancellation=cancellation)
        return result.data

    async def replace_document(
        self,
        link: str,
        doc: Any,
        headers: Optional[Mapping[str, str]] = None,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> Document:
        result = await self.client.replace(
            link, doc, Document, headers=headers, cancellation=cancellation, collection=collection
        )
        return result.data

    async def replace_stored_procedure(
        self, link: str, body: Any, cancellation: Optional[CancellationToken] = None
    ) -> StoredProcedure:
        result = await self.client.replace(link, body, StoredProcedure, cancellation=cancellation)
        return result.data

    async def replace_user_defined_function(
        self, link: str, body: Any, cancellation: Optional[CancellationToken] = None
    ) -> UserDefinedFunction:
        result = await self.client.replace(link, body, UserDefinedFunction, cancellation=cancellation)
        return result.data

    # ========== Delete ==========

    async def delete_database(self, link: str, cancellation: Optional[CancellationToken] = None) -> None:
        await self.client.delete(link, cancellation=cancellation)

    async def delete_collection(
        self,
        link: str,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> None:
        await self.client.delete(link, cancellation=cancellation, collection=collection)

    async def delete_document(
        self,
        link: str,
        etag: str = "",
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
    ) -> None:
        await self.client.delete(
            link, headers=_etag_headers(etag), cancellation=cancellation, collection=collection
        )

    async def delete_stored_procedure(
        self, link: str, cancellation: Optional[CancellationToken] = None
    ) -> None:
        await self.client.delete(link, cancellation=cancellation)

    async def delete_user_defined_function(
        self, link: str, cancellation: Optional[CancellationToken] = None
    ) -> None:
        await self.client.delete(link, cancellation=cancellation)

    # ========== Stored procedures ==========

    async def execute_stored_procedure(
        self,
        link: str,
        params: Any = None,
        target: Any = Any,
        cancellation: Optional[CancellationToken] = None,
        collection: Optional[str] = None,
        procedure: Optional[str] = None,
    ) -> Any:
        """
        Execute a stored procedure.

        Args:
            link: Stored procedure self link
            params: Arguments, serialized as the JSON request body
            target: Type the procedure's response is decoded into

        Returns:
            Decoded response body
        """
        result = await self.client.execute(
            link,
            params,
            target,
            cancellation=cancellation,
            collection=collection,
            procedure=procedure,
        )
        return result.data

    # ========== Hierarchy ==========

    async def database(self, database_id: str, cancellation: Optional[CancellationToken] = None) -> "DatabaseProxy":
        """
        Look up a database by id.

        Raises:
            NotFoundError: If no database has that id
        """
        databases = await self.query_databases(id_query(database_id), cancellation=cancellation)
        if not databases:
            raise NotFoundError(f"Database '{database_id}' not found", resource_id=database_id)
        return DatabaseProxy(self, databases[0])

    async def create_database_proxy(
        self, database_id: str, cancellation: Optional[CancellationToken] = None
    ) -> "DatabaseProxy":
        database = await self.create_database({"id": database_id}, cancellation=cancellation)
        logger.info(f"Created database: {database_id}")
        return DatabaseProxy(self, database)

    async def create_database_if_not_exists(
        self, database_id: str, cancellation: Optional[CancellationToken] = None
    ) -> "DatabaseProxy":
        """Return the database with this id, creating it when missing."""
        try:
            return await self.database(database_id, cancellation=cancellation)
        except NotFoundError:
            pass

        try:
            return await self.create_database_proxy(database_id, cancellation=cancellation)
        except RequestError as e:
            if not e.is_conflict:
                raise
            logger.debug(f"Database '{database_id}' was created concurrently, reading it back")
            return await self.database(database_id, cancellation=cancellation)


class DatabaseProxy:
    """A database bound to the API client that read it."""

    def __init__(self, api: DocumentDB, database: Database):
        self.api = api
        self.database = database

    @property
    def id(self) -> str:
        return self.database.id

    @property
    def self_link(self) -> str:
        return self.database.self_link

    async def delete(self, cancellation: Optional[CancellationToken] = None) -> None:
        await self.api.delete_database(self.self_link, cancellation=cancellation)

    async def collection(
        self, collection_id: str, cancellation: Optional[CancellationToken] = None
    ) -> "CollectionProxy":
        """
        Look up a collection of this database by id.

        Raises:
            NotFoundError: If no collection has that id
        """
        collections = await self.api.query_collections(
            self.self_link, id_query(collection_id), cancellation=cancellation
        )
        if not collections:
            raise NotFoundError(f"Collection '{collection_id}' not found", resource_id=collection_id)
        return CollectionProxy(self, collections[0])

    async def create_collection(
        self,
        collection_id: str,
        collection: Optional[Collection] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> "CollectionProxy":
        """
        Create a collection in this database.

        Args:
            collection_id: Id of the new collection
            collection: Template carrying e.g. an indexing policy
        """
        body = collection.model_copy(update={"id": collection_id}) if collection else Collection(id=collection_id)
        created = await self.api.create_collection(self.self_link, body, cancellation=cancellation)
        logger.info(f"Created collection: {self.id}/{collection_id}")
        return CollectionProxy(self, created)

    async def create_collection_if_not_exists(
        self,
        collection_id: str,
        collection: Optional[Collection] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> "CollectionProxy":
        try:
            return await self.collection(collection_id, cancellation=cancellation)
        except NotFoundError:
            pass

        try:
            return await self.create_collection(collection_id, collection, cancellation=cancellation)
        except RequestError as e:
            if not e.is_conflict:
                raise
            logger.debug(f"Collection '{collection_id}' was created concurrently, reading it back")
            return await self.collection(collection_id, cancellation=cancellation)


class CollectionProxy:
    """
    A collection bound to its database proxy.

    Every call made through the proxy reports the collection id to the
    response hook.
    """

    def __init__(self, database: DatabaseProxy, collection: Collection):
        self.database = database
        self.collection = collection

    @property
    def api(self) -> DocumentDB:
        return self.database.api

    @property
    def id(self) -> str:
        return self.collection.id

    @property
    def self_link(self) -> str:
        return self.collection.self_link

    async def delete(self, cancellation: Optional[CancellationToken] = None) -> None:
        await self.api.delete_collection(self.self_link, cancellation=cancellation, collection=self.id)

    async def query_documents(
        self,
        query: Optional[Query],
        target: Any = Document,
        cancellation: Optional[CancellationToken] = None,
    ) -> Tuple[List[Any], str]:
        return await self.api.query_documents(
            self.self_link, query, target, cancellation=cancellation, collection=self.id
        )

    async def create_document(self, doc: Any, cancellation: Optional[CancellationToken] = None) -> Document:
        return await self.api.create_document(
            self.self_link, doc, cancellation=cancellation, collection=self.id
        )

    async def update_document(
        self, doc: Any, etag: str = "", cancellation: Optional[CancellationToken] = None
    ) -> Document:
        return await self.api.update_document(
            self.self_link, doc, etag, cancellation=cancellation, collection=self.id
        )

    async def upsert_document(
        self, doc: Any, etag: str = "", cancellation: Optional[CancellationToken] = None
    ) -> Document:
        return await self.api.upsert_document(
            self.self_link, doc, etag, cancellation=cancellation, collection=self.id
        )

    async def delete_document(
        self, link: str, etag: str = "", cancellation: Optional[CancellationToken] = None
    ) -> None:
        await self.api.delete_document(link, etag, cancellation=cancellation, collection=self.id)

    async def create_stored_procedure(
        self,
        procedure_id: str,
        body: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> "StoredProcedureProxy":
        """
        Create a stored procedure in this collection.

        Args:
            procedure_id: Id of the new stored procedure
            body: JavaScript source of the procedure
        """
        created = await self.api.create_stored_procedure(
            self.self_link,
            StoredProcedure(id=procedure_id, body=body),
            cancellation=cancellation,
            collection=self.id,
        )
        return StoredProcedureProxy(self, created)

    async def stored_procedure(
        self, procedure_id: str, cancellation: Optional[CancellationToken] = None
    ) -> "StoredProcedureProxy":
        """
        Look up a stored procedure of this collection by id.

        Raises:
            NotFoundError: If no stored procedure has that id
        """
        procedures = await self.api.query_stored_procedures(
            self.self_link, id_query(procedure_id), cancellation=cancellation, collection=self.id
        )
        if not procedures:
            raise NotFoundError(f"Stored procedure '{procedure_id}' not found", resource_id=procedure_id)
        return StoredProcedureProxy(self, procedures[0])


class StoredProcedureProxy:
    """A stored procedure bound to its collection proxy."""

    def __init__(self, collection: CollectionProxy, procedure: StoredProcedure):
        self.collection = collection
        self.procedure = procedure

    @property
    def id(self) -> str:
        return self.procedure.id

    @property
    def self_link(self) -> str:
        return self.procedure.self_link

    async def execute(
        self,
        *args: Any,
        target: Any = Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Execute the procedure with positional arguments.

        Without arguments the request is sent with an empty body.
        """
        params = list(args) if args else None
        return await self.collection.api.execute_stored_procedure(
            self.self_link,
            params,
            target,
            cancellation=cancellation,
            collection=self.collection.id,
            procedure=self.id,
        )
