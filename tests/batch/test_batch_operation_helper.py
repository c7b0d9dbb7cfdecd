from __future__ import annotations

import asyncio

import pytest

from fetchkit.batch import (
    BatchOperationHelper,
    DeleteOperation,
    SetOperation,
    UpdateOperation,
    chunked,
)
from fetchkit.errors import BatchCommitError, DocumentNotFoundError
from fetchkit.settings import FetchKitSettings
from fetchkit.store import DocumentSnapshot, InMemoryDocumentStore


def run_async(coro):
    return asyncio.run(coro)


class _Ref:
    def __init__(self, path: str, delay_s: float = 0.0) -> None:
        self.path = path
        self.id = path.rsplit("/", 1)[-1]
        self.delay_s = delay_s

    async def get(self) -> DocumentSnapshot:
        await asyncio.sleep(self.delay_s)
        return DocumentSnapshot(path=self.path, id=self.id, data={"id": self.id})


class _RecordingBatch:
    def __init__(self, store: "_RecordingStore") -> None:
        self._store = store
        self.paths: list[str] = []

    def set(self, ref, data, *, merge: bool = False) -> None:
        _ = data
        _ = merge
        self.paths.append(ref.path)

    def update(self, ref, data) -> None:
        _ = data
        self.paths.append(ref.path)

    def delete(self, ref) -> None:
        self.paths.append(ref.path)

    async def commit(self) -> None:
        await asyncio.sleep(0)
        attempt = len(self._store.attempts) + 1
        self._store.attempts.append(len(self.paths))
        if attempt in self._store.fail_on_attempts:
            raise ConnectionError(f"commit {attempt} rejected")
        self._store.committed.append(list(self.paths))


class _RecordingStore:
    backend_id = "recording"

    def __init__(self, *, fail_on_attempts: set[int] | None = None) -> None:
        self.fail_on_attempts = fail_on_attempts or set()
        self.attempts: list[int] = []
        self.committed: list[list[str]] = []
        self.batches_opened = 0

    def doc(self, path: str) -> _Ref:
        return _Ref(path)

    def collection(self, name: str):
        raise NotImplementedError(name)

    def batch(self) -> _RecordingBatch:
        self.batches_opened += 1
        return _RecordingBatch(self)


def _operations(count: int) -> list[SetOperation]:
    return [SetOperation(_Ref(f"items/{i:05d}"), {"n": i}) for i in range(count)]


def test_execute_batch_splits_into_ordered_chunks():
    async def scenario() -> None:
        store = _RecordingStore()
        helper = BatchOperationHelper(store, max_batch_size=500)
        ops = _operations(1234)

        await helper.execute_batch(ops, operation_name="bulk seed")

        assert [len(chunk) for chunk in store.committed] == [500, 500, 234]
        flattened = [path for chunk in store.committed for path in chunk]
        assert flattened == [op.path for op in ops]

    run_async(scenario())


def test_failed_chunk_stops_remaining_chunks():
    async def scenario() -> None:
        store = _RecordingStore(fail_on_attempts={2})
        helper = BatchOperationHelper(store, max_batch_size=500)

        with pytest.raises(BatchCommitError) as exc_info:
            await helper.execute_batch(_operations(1234), operation_name="bulk seed")

        error = exc_info.value
        assert error.chunk_index == 1
        assert error.chunk_count == 3
        assert error.committed_operations == 500
        assert error.operation_name == "bulk seed"
        assert isinstance(error.__cause__, ConnectionError)
        assert store.attempts == [500, 500]
        assert store.batches_opened == 2
        assert len(store.committed) == 1

    run_async(scenario())


def test_empty_batch_opens_no_transaction():
    async def scenario() -> None:
        store = _RecordingStore()
        await BatchOperationHelper(store).execute_batch([])
        assert store.batches_opened == 0

    run_async(scenario())


def test_batch_read_returns_one_entry_per_path():
    async def scenario() -> None:
        helper = BatchOperationHelper(_RecordingStore())
        # Later refs finish first.
        refs = [_Ref(f"users/u{i}", delay_s=(10 - i) * 0.001) for i in range(10)]

        result = await helper.batch_read(refs)

        assert len(result) == 10
        assert set(result) == {ref.path for ref in refs}
        assert result["users/u3"].data == {"id": "u3"}
        assert await helper.batch_read([]) == {}

    run_async(scenario())


def test_batch_update_and_delete_against_memory_store():
    async def scenario() -> None:
        store = InMemoryDocumentStore()
        helper = BatchOperationHelper(store, max_batch_size=2)
        refs = [store.doc(f"users/u{i}") for i in range(5)]

        await helper.batch_set(refs, {"active": True, "score": 0})
        await helper.batch_update(refs[:3], {"score": 10})
        await helper.batch_delete(refs[3:])

        snapshots = await helper.batch_read(refs)
        assert snapshots["users/u0"].data == {"active": True, "score": 10}
        assert snapshots["users/u2"].data == {"active": True, "score": 10}
        assert not snapshots["users/u3"].exists
        assert not snapshots["users/u4"].exists
        # 5 sets + 3 updates + 2 deletes in chunks of 2.
        assert store.commit_count == 3 + 2 + 1

    run_async(scenario())


def test_update_of_missing_document_aborts_its_chunk():
    async def scenario() -> None:
        store = InMemoryDocumentStore()
        helper = BatchOperationHelper(store, max_batch_size=2)
        ops = [
            SetOperation(store.doc("users/a"), {"v": 1}),
            SetOperation(store.doc("users/b"), {"v": 1}),
            SetOperation(store.doc("users/c"), {"v": 1}),
            UpdateOperation(store.doc("users/missing"), {"v": 2}),
            DeleteOperation(store.doc("users/a")),
        ]

        with pytest.raises(BatchCommitError) as exc_info:
            await helper.execute_batch(ops)

        assert isinstance(exc_info.value.__cause__, DocumentNotFoundError)
        assert exc_info.value.committed_operations == 2
        assert (await store.doc("users/a").get()).exists
        assert (await store.doc("users/b").get()).exists
        assert not (await store.doc("users/c").get()).exists

    run_async(scenario())


def test_merge_set_keeps_existing_fields():
    async def scenario() -> None:
        store = InMemoryDocumentStore()
        helper = BatchOperationHelper(store)
        ref = store.doc("users/u1")

        await helper.execute_batch([SetOperation(ref, {"name": "Ada", "level": 1})])
        await helper.execute_batch([SetOperation(ref, {"level": 2}, merge=True)])
        assert (await ref.get()).data == {"name": "Ada", "level": 2}

        await helper.execute_batch([SetOperation(ref, {"level": 3})])
        assert (await ref.get()).data == {"level": 3}

    run_async(scenario())


def test_chunked_preserves_order_and_bounds():
    assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunked([], 3) == []
    with pytest.raises(ValueError):
        chunked([1], 0)


def test_helper_reads_max_batch_size_from_settings():
    helper = BatchOperationHelper.from_settings(
        InMemoryDocumentStore(), FetchKitSettings(max_batch_size=50)
    )
    assert helper.max_batch_size == 50
    with pytest.raises(ValueError, match="max_batch_size"):
        BatchOperationHelper(InMemoryDocumentStore(), max_batch_size=0)
