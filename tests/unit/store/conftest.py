"""Shared scenario for chunk store tests, run against every implementation."""

from datetime import datetime

import pytest

from tenderrag.datasource.store import DuckDBChunkStore, InMemoryChunkStore
from tenderrag.entities import ChunkOwner
from tests.utils.builders import OwnerBuilder


@pytest.fixture(params=["memory", "duckdb"])
def store(request):
    if request.param == "memory":
        return InMemoryChunkStore()
    return DuckDBChunkStore(":memory:")


@pytest.fixture
def owners() -> list[ChunkOwner]:
    return [
        OwnerBuilder("doc-a").titled("Bestek verlichting").in_scope("p1", "o1")
        .published(datetime(2024, 1, 10)).build(),
        OwnerBuilder("doc-b").titled("Bestek asfalt").in_scope("p2", "o1")
        .published(datetime(2024, 2, 10)).build(),
        OwnerBuilder("doc-deleted").titled("Ingetrokken document").in_scope("p1", "o1")
        .deleted().build(),
        OwnerBuilder("tender-x").titled("Openbare verlichting Utrecht").as_tender()
        .published(datetime(2024, 3, 1)).build(),
    ]
