"""Test configuration and fixtures."""

import asyncio
import itertools

import pytest

from config import TestConfig
from sideline import create_app
from sideline.models import COLLECTIONS
from sideline.services.storage import (
    MAX_PAGE_SIZE, Collection, Page, RecordNotFound, StorageClient, StoreError,
    split_filter,
)


class FakeCollection(Collection):
    """In-memory collection that logs every call into the shared store log.

    Each call yields to the event loop before finishing so concurrent calls
    genuinely interleave.
    """

    def __init__(self, name, store):
        super().__init__(name)
        self.store = store
        self.records = {}
        self.page_size = None
        self.fail_list = False
        self.fail_delete = set()
        self.fail_update = set()

    async def list(self, filter, page_token=None, limit=MAX_PAGE_SIZE):
        field, value = split_filter(filter)
        self.store.calls.append(('list', self.name, field, value, page_token))
        await asyncio.sleep(0)
        if self.fail_list:
            raise StoreError(f'{self.name} listing unavailable')
        matches = [dict(r) for _, r in sorted(self.records.items()) if r.get(field) == value]
        size = min(limit, self.page_size or limit)
        start = int(page_token or 0)
        end = start + size
        return Page(matches[start:end], str(end) if end < len(matches) else None)

    async def get(self, record_id):
        record = self.records.get(record_id)
        return dict(record) if record else None

    async def put(self, record):
        record = dict(record)
        record.setdefault('id', f'{self.name.lower()}-{next(self.store.ids)}')
        self.records[record['id']] = record
        return dict(record)

    async def delete(self, record_id):
        self.store.calls.append(('delete', self.name, record_id))
        self.store.in_flight += 1
        self.store.max_in_flight = max(self.store.max_in_flight, self.store.in_flight)
        try:
            await asyncio.sleep(0)
            if record_id in self.fail_delete:
                raise StoreError(f'{self.name} {record_id} delete rejected')
            existed = self.records.pop(record_id, None) is not None
        finally:
            self.store.in_flight -= 1
        self.store.calls.append(('deleted', self.name, record_id))
        return existed

    async def update(self, record_id, fields):
        self.store.calls.append(('update', self.name, record_id, dict(fields)))
        await asyncio.sleep(0)
        if record_id in self.fail_update:
            raise StoreError(f'{self.name} {record_id} update rejected')
        if record_id not in self.records:
            raise RecordNotFound(record_id)
        self.records[record_id].update(fields)
        return dict(self.records[record_id])


class FakeStore(StorageClient):
    def __init__(self):
        self.calls = []
        self.ids = itertools.count(1)
        self.in_flight = 0
        self.max_in_flight = 0
        super().__init__(FakeCollection(name, self) for name in COLLECTIONS)

    def add(self, collection, record_id, **fields):
        self[collection].records[record_id] = {'id': record_id, **fields}
        return record_id

    def ids_in(self, collection):
        return set(self[collection].records)

    def delete_calls(self):
        """Ids passed to delete, in the order the calls were issued."""
        return [call[2] for call in self.calls if call[0] == 'delete']

    def completed_deletes(self):
        return [call[2] for call in self.calls if call[0] == 'deleted']

    def update_calls(self):
        return [(call[2], call[3]) for call in self.calls if call[0] == 'update']

    def list_calls(self, collection=None):
        return [call for call in self.calls if call[0] == 'list' and collection in (None, call[1])]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    with client.session_transaction() as session:
        session['admin'] = True
    return client


@pytest.fixture
def runner(app):
    return app.test_cli_runner()
