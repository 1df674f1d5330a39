"""
DocumentDB Models.

Pydantic models for Azure Cosmos DB SQL API resources and queries,
matching the JSON shapes of the DocumentDB REST API.
"""

import json
import uuid
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_PRECISION = -1

# System properties are assigned by the server and omitted from request bodies when empty
SYSTEM_FIELDS = frozenset(
    ["_self", "_etag", "_rid", "_ts", "_colls", "_users", "_docs", "_udfs",
     "_sprocs", "_triggers", "_conflicts", "_attachments"]
)


@runtime_checkable
class Identifiable(Protocol):
    """Documents that expose their id through explicit accessors."""

    def get_id(self) -> str: ...

    def set_id(self, value: str) -> None: ...


def new_id() -> str:
    """Generate a new document id."""
    return str(uuid.uuid4())


def ensure_id(doc: Any) -> Any:
    """Fill an empty id on ``doc`` with a generated one.

    Supports ``Identifiable`` objects and plain dicts. Other values are
    returned untouched.
    """
    if isinstance(doc, Identifiable):
        if not doc.get_id():
            doc.set_id(new_id())
    elif isinstance(doc, dict):
        if not doc.get("id"):
            doc["id"] = new_id()
    return doc


def document_id(doc: Any) -> str:
    """Return the id of ``doc`` or an empty string."""
    if isinstance(doc, Identifiable):
        return doc.get_id() or ""
    if isinstance(doc, dict):
        return str(doc.get("id") or "")
    return ""


# ========== Queries ==========

class QueryParam(BaseModel):
    """Named query parameter.

    Attributes:
        name: Placeholder used in the query text, e.g. ``@id``
        value: Any JSON-serializable value bound at the server
    """

    name: str
    value: Any = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.startswith("@"):
            raise ValueError(f"Query parameter name must start with '@': {v}")
        return v


class Query(BaseModel):
    """SQL query with parameters and an optional continuation token.

    Attributes:
        text: SQL query string
        params: Ordered query parameters
        token: Continuation token from the previous page (never sent in the body)
    """

    text: str = Field(default="", alias="query")
    params: List[QueryParam] = Field(default_factory=list, alias="parameters")
    token: str = Field(default="", exclude=True)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def new(cls, text: str, params: Optional[Mapping[str, Any]] = None, token: str = "") -> "Query":
        """Create a query from a mapping of ``@name -> value``.

        Example:
            Query.new("SELECT * FROM root r WHERE r.id = @id", {"@id": "foo"})
        """
        items = [QueryParam(name=name, value=value) for name, value in (params or {}).items()]
        return cls(text=text, params=items, token=token)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"query": self.text}
        if self.params:
            payload["parameters"] = [p.model_dump() for p in self.params]
        return payload

    def to_body(self) -> bytes:
        return json.dumps(self.to_payload()).encode("utf-8")


def id_query(resource_id: str) -> Query:
    """Query matching a single resource by id."""
    return Query(
        text="SELECT * FROM ROOT r WHERE r.id = @id",
        params=[QueryParam(name="@id", value=resource_id)],
    )


# ========== Resources ==========

class Resource(BaseModel):
    """Fields shared by every DocumentDB resource.

    Attributes:
        id: Resource identifier, unique within its parent
        self_link: Server-assigned relative path (``_self``)
        etag: Optimistic concurrency token (``_etag``)
        rid: Resource ID (``_rid``)
        ts: Last modification timestamp (``_ts``)
    """

    id: str = ""
    self_link: str = Field(default="", alias="_self")
    etag: str = Field(default="", alias="_etag")
    rid: str = Field(default="", alias="_rid")
    ts: int = Field(default=0, alias="_ts")

    model_config = ConfigDict(populate_by_name=True)

    def get_id(self) -> str:
        return self.id

    def set_id(self, value: str) -> None:
        self.id = value

    def to_payload(self) -> Dict[str, Any]:
        """Serialize as a request body, dropping empty system fields."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        for key in list(data):
            if key in SYSTEM_FIELDS and not data[key]:
                del data[key]
        if not data.get("id"):
            data.pop("id", None)
        return data


class IndexingMode(str, Enum):
    """Indexing modes."""
    CONSISTENT = "Consistent"
    LAZY = "Lazy"


class DataType(str, Enum):
    """Indexed data types."""
    STRING = "String"
    NUMBER = "Number"
    POINT = "Point"
    POLYGON = "Polygon"
    LINE_STRING = "LineString"


class IndexKind(str, Enum):
    """Index kinds."""
    HASH = "Hash"
    RANGE = "Range"
    SPATIAL = "Spatial"


class Index(BaseModel):
    """Index on an included path."""

    data_type: Optional[DataType] = Field(default=None, alias="dataType")
    kind: Optional[IndexKind] = None
    precision: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class IncludedPath(BaseModel):
    path: str
    indexes: Optional[List[Index]] = None


class ExcludedPath(BaseModel):
    path: str


class IndexingPolicy(BaseModel):
    """Indexing policy.

    Attributes:
        indexing_mode: Consistent or Lazy
        automatic: Whether documents are indexed automatically
        included: Paths included in the index
        excluded: Paths excluded from the index
    """

    indexing_mode: Optional[IndexingMode] = Field(default=None, alias="indexingMode")
    automatic: bool = True
    included: Optional[List[IncludedPath]] = Field(default=None, alias="includedPaths")
    excluded: Optional[List[ExcludedPath]] = Field(default=None, alias="excludedPaths")

    model_config = ConfigDict(populate_by_name=True)


class Database(Resource):
    """Database resource.

    Attributes:
        colls: Collections feed link (``_colls``)
        users: Users feed link (``_users``)
    """

    colls: str = Field(default="", alias="_colls")
    users: str = Field(default="", alias="_users")


class Collection(Resource):
    """Document collection resource."""

    indexing_policy: Optional[IndexingPolicy] = Field(default=None, alias="indexingPolicy")
    docs: str = Field(default="", alias="_docs")
    udfs: str = Field(default="", alias="_udfs")
    sprocs: str = Field(default="", alias="_sprocs")
    triggers: str = Field(default="", alias="_triggers")
    conflicts: str = Field(default="", alias="_conflicts")


class Document(Resource):
    """Document resource.

    User fields are kept as extra attributes.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow"
    )

    attachments: str = Field(default="", alias="_attachments")


class StoredProcedure(Resource):
    """Stored procedure resource; ``body`` holds the JavaScript source."""

    body: str = ""


class UserDefinedFunction(Resource):
    """User-defined function resource; ``body`` holds the JavaScript source."""

    body: str = ""


# ========== Feeds ==========

class DatabaseList(BaseModel):
    rid: str = Field(default="", alias="_rid")
    databases: List[Database] = Field(default_factory=list, alias="Databases")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class CollectionList(BaseModel):
    rid: str = Field(default="", alias="_rid")
    collections: List[Collection] = Field(default_factory=list, alias="DocumentCollections")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class StoredProcedureList(BaseModel):
    rid: str = Field(default="", alias="_rid")
    stored_procedures: List[StoredProcedure] = Field(default_factory=list, alias="StoredProcedures")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class UserDefinedFunctionList(BaseModel):
    rid: str = Field(default="", alias="_rid")
    user_defined_functions: List[UserDefinedFunction] = Field(
        default_factory=list, alias="UserDefinedFunctions"
    )
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class DocumentList(BaseModel):
    """Page of documents. Items are kept as raw JSON objects."""

    rid: str = Field(default="", alias="_rid")
    documents: List[Dict[str, Any]] = Field(default_factory=list, alias="Documents")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)
