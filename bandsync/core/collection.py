"""Shared plumbing for the group-scoped record collections."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Optional, TypeVar

from bandsync.errors import NotFoundError, ValidationError
from bandsync.permissions.services import PermissionService
from bandsync.store.base import where

if TYPE_CHECKING:
    from bandsync.auth.session import IdentitySession
    from bandsync.core.types import Module
    from bandsync.store.base import DocumentStore

logger = logging.getLogger(__name__)


def jsonable(value: Any) -> Any:
    """Convert datetimes inside a document into ISO-8601 strings."""
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [jsonable(item) for item in value]
    return value


class GroupRecord:
    """Mixin for dataclass records that belong to a group.

    Subclasses provide ``id``, ``group_id``, ``from_document`` and
    ``to_document``.
    """

    id: str
    group_id: str

    @classmethod
    def from_document(cls, data: dict[str, Any], error: Any = None) -> Any:
        raise NotImplementedError

    def to_document(self) -> dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_payload(cls, payload: Any, group_id: str) -> Any:
        """Build a record from request data, raising ValidationError."""
        if not isinstance(payload, dict):
            raise ValidationError("Expected a JSON object.")
        data = {**payload, "id": "", "groupId": group_id}
        record = cls.from_document(data, error=ValidationError)
        record.validate()
        return record

    def validate(self) -> None:
        """Check business rules that go beyond field types."""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {"id": self.id, **jsonable(self.to_document())}


RecordT = TypeVar("RecordT", bound=GroupRecord)


class GroupCollection(Generic[RecordT]):
    """CRUD over one store collection, scoped to a group and permission-gated.

    Every operation checks the session user's access to ``module`` before it
    touches the store. When ``editor_only`` is set, writes additionally need
    an editing role.
    """

    collection: ClassVar[str]
    module: ClassVar[Module]
    model: ClassVar[type]
    editor_only: ClassVar[bool] = False
    label: ClassVar[str] = "Record"

    def __init__(
        self,
        store: DocumentStore,
        session: IdentitySession,
        permissions: Optional[PermissionService] = None,
    ) -> None:
        self._store = store
        self._session = session
        self._permissions = permissions or PermissionService(store, session)

    def sort(self, records: list[RecordT]) -> list[RecordT]:
        """Order records for listing. Defaults to id order."""
        return sorted(records, key=lambda record: record.id)

    async def list(self, group_id: str) -> list[RecordT]:
        """Return all of the group's records."""
        await self._permissions.check_access(group_id, self.module)
        return self.sort(await self._query(group_id))

    async def get(self, group_id: str, record_id: str) -> RecordT:
        """Return one record of the group."""
        await self._permissions.check_access(group_id, self.module)
        return await self._fetch(group_id, record_id)

    async def create(self, group_id: str, payload: Any) -> RecordT:
        """Validate and store a new record."""
        await self._check_write(group_id)
        record = self.model.from_payload(payload, group_id)
        record.id = await self._store.add(self.collection, record.to_document())
        logger.info(f"{self.label} {record.id} created in group {group_id}")
        return record

    async def update(self, group_id: str, record_id: str, payload: Any) -> RecordT:
        """Replace an existing record."""
        await self._check_write(group_id)
        await self._fetch(group_id, record_id)
        record = self.model.from_payload(payload, group_id)
        record.id = record_id
        await self._store.put(self.collection, record_id, record.to_document())
        logger.info(f"{self.label} {record_id} updated in group {group_id}")
        return record

    async def delete(self, group_id: str, record_id: str) -> None:
        """Delete a record."""
        await self._check_write(group_id)
        await self._fetch(group_id, record_id)
        await self._store.delete(self.collection, record_id)
        logger.info(f"{self.label} {record_id} deleted from group {group_id}")

    async def _check_write(self, group_id: str) -> None:
        await self._permissions.check_access(
            group_id, self.module, edit=self.editor_only
        )

    async def _query(self, group_id: str, *filters: Any) -> list[RecordT]:
        docs = await self._store.query(
            self.collection, [where("groupId", "==", group_id), *filters]
        )
        return [self.model.from_document(doc) for doc in docs]

    async def _fetch(self, group_id: str, record_id: str) -> RecordT:
        try:
            data = await self._store.get(self.collection, record_id)
        except NotFoundError as e:
            raise NotFoundError(f"{self.label} not found.") from e
        if data.get("groupId") != group_id:
            raise NotFoundError(f"{self.label} not found.")
        return self.model.from_document(data)
