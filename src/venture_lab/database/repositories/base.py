"""Generic repository over one Cosmos DB container."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from azure.core import MatchConditions
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from venture_lab.models.base import DocumentBase, utcnow

if TYPE_CHECKING:
    from azure.cosmos.aio import DatabaseProxy

_HTTP_PRECONDITION_FAILED = 412

T = TypeVar("T", bound=DocumentBase)


class BaseRepository(Generic[T]):
    """CRUD helpers shared by every container repository.

    Subclasses set ``container_name`` and ``model_class``. Documents are
    serialized with ``exclude_none`` so optional fields that were cleared
    disappear from the stored item.
    """

    container_name: ClassVar[str]
    model_class: type[T]

    def __init__(self, database: DatabaseProxy) -> None:
        self._container = database.get_container_client(self.container_name)

    def _body(self, item: T) -> dict[str, Any]:
        return item.model_dump(mode="json", exclude_none=True)

    async def create(self, item: T) -> T:
        """Insert a new document. Raises if the id already exists."""
        await self._container.create_item(body=self._body(item))
        return item

    async def create_if_absent(self, item: T) -> bool:
        """Insert a new document, returning False when the id is already taken."""
        try:
            await self._container.create_item(body=self._body(item))
        except CosmosResourceExistsError:
            return False
        return True

    async def get(self, item_id: str, partition_key: str) -> T | None:
        """Read a document by id; soft-deleted and missing documents return None."""
        try:
            data = cast(
                "dict[str, Any]",
                await self._container.read_item(item=item_id, partition_key=partition_key),
            )
        except CosmosResourceNotFoundError:
            return None
        if data.get("deleted_at") is not None:
            return None
        return self.model_class.model_validate(data)

    async def get_with_etag(self, item_id: str, partition_key: str) -> tuple[T, str] | None:
        """Read a document together with its etag for a later conditional replace."""
        try:
            data = cast(
                "dict[str, Any]",
                await self._container.read_item(item=item_id, partition_key=partition_key),
            )
        except CosmosResourceNotFoundError:
            return None
        return self.model_class.model_validate(data), cast("str", data.get("_etag", ""))

    async def upsert(self, item: T) -> T:
        item.updated_at = utcnow()
        await self._container.upsert_item(body=self._body(item))
        return item

    async def update(self, item: T, partition_key: str) -> T:  # noqa: ARG002
        item.updated_at = utcnow()
        await self._container.replace_item(item=item.id, body=self._body(item))
        return item

    async def replace_if_unchanged(self, item: T, etag: str) -> bool:
        """Replace a document only if nobody wrote it since ``etag`` was read."""
        item.updated_at = utcnow()
        try:
            await self._container.replace_item(
                item=item.id,
                body=self._body(item),
                etag=etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == _HTTP_PRECONDITION_FAILED:
                return False
            raise
        return True

    async def delete(self, item_id: str, partition_key: str) -> bool:
        """Hard-delete a document. Returns False when it did not exist."""
        try:
            await self._container.delete_item(item=item_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            return False
        return True

    async def query(self, query: str, parameters: list[dict[str, Any]] | None = None) -> list[T]:
        """Run a SQL query and validate every row into the model class."""
        items = self._container.query_items(query=query, parameters=parameters or [])
        return [self.model_class.model_validate(item) async for item in items]
