"""Storage client abstraction for the schemaless record store.

Each collection is reached through its own :class:`Collection` accessor and
the accessors are grouped behind one injected :class:`StorageClient`, so the
cascade engine can run against the SQL backend or an in-memory fake alike.
"""
import uuid
from abc import ABC, abstractmethod
from collections import namedtuple

from sqlalchemy.exc import SQLAlchemyError

from sideline.extensions import db
from sideline.models import COLLECTIONS, Record

# Store-defined maximum number of records returned by a single list call.
MAX_PAGE_SIZE = 1000

Page = namedtuple('Page', ['records', 'next_token'])


class StoreError(Exception):
    """Raised when the backing store rejects an operation."""


class RecordNotFound(StoreError):
    """Raised when updating a key that does not exist."""


def split_filter(filter):
    """Return the single ``(field, value)`` pair of an equality filter."""
    if not filter or len(filter) != 1:
        raise ValueError(f'Expected an equality filter on exactly one field, got {filter!r}')
    return next(iter(filter.items()))


class Collection(ABC):
    """Async accessor for one named collection."""

    def __init__(self, name):
        self.name = name

    @abstractmethod
    async def list(self, filter, page_token=None, limit=MAX_PAGE_SIZE):
        """Return one :class:`Page` of records whose ``field == value``."""

    @abstractmethod
    async def get(self, record_id):
        """Return the record or ``None``."""

    @abstractmethod
    async def put(self, record):
        """Create or replace a record. An ``id`` is generated when missing."""

    @abstractmethod
    async def delete(self, record_id):
        """Delete a record. Returns whether the key existed."""

    @abstractmethod
    async def update(self, record_id, fields):
        """Merge ``fields`` into an existing record and return it."""

    def __repr__(self):
        return f'{self.__class__.__name__}({self.name!r})'


class StorageClient:
    """One handle over every collection accessor, indexed by collection name."""

    def __init__(self, collections):
        self._collections = {c.name: c for c in collections}

    def __getitem__(self, name):
        try:
            return self._collections[name]
        except KeyError:
            raise KeyError(f'Unknown collection: {name}') from None

    def __contains__(self, name):
        return name in self._collections

    @property
    def names(self):
        return list(self._collections)


class SqlCollection(Collection):
    """Collection backed by the Flask-SQLAlchemy ``record`` table.

    Every write commits on its own; there is no transaction spanning
    collections or even two records.
    """

    def _query(self):
        return Record.query.filter_by(collection=self.name)

    async def list(self, filter, page_token=None, limit=MAX_PAGE_SIZE):
        field, value = split_filter(filter)
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        query = self._query().filter(Record.data[field].as_string() == str(value))
        if page_token:
            query = query.filter(Record.id > page_token)
        # One extra row tells us whether another page exists.
        rows = query.order_by(Record.id).limit(limit + 1).all()

        next_token = None
        if len(rows) > limit:
            rows = rows[:limit]
            next_token = rows[-1].id
        return Page([r.to_dict() for r in rows], next_token)

    async def get(self, record_id):
        row = db.session.get(Record, (self.name, record_id))
        return row.to_dict() if row else None

    async def put(self, record):
        data = dict(record)
        record_id = str(data.pop('id', None) or uuid.uuid4())
        row = db.session.get(Record, (self.name, record_id))
        if row is None:
            row = Record(collection=self.name, id=record_id)
            db.session.add(row)
        row.data = data
        self._commit()
        return row.to_dict()

    async def delete(self, record_id):
        row = db.session.get(Record, (self.name, record_id))
        if row is None:
            return False
        db.session.delete(row)
        self._commit()
        return True

    async def update(self, record_id, fields):
        row = db.session.get(Record, (self.name, record_id))
        if row is None:
            raise RecordNotFound(f'{self.name} {record_id} does not exist')
        fields = {k: v for k, v in fields.items() if k != 'id'}
        # Reassign so the JSON column is flagged as modified.
        row.data = {**(row.data or {}), **fields}
        self._commit()
        return row.to_dict()

    def _commit(self):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'{self.name}: {e}') from e


def sql_storage_client():
    """Storage client over every known collection, backed by SQL."""
    return StorageClient(SqlCollection(name) for name in COLLECTIONS)
