"""Tests for parcel indexing, retraction and listings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ledger_indexer.errors.store_errors import InvalidQueryError, NotFoundError
from tests.conftest import OTHER_PLATFORM_ADDRESS, PLATFORM_ADDRESS, make_parcel

if TYPE_CHECKING:
    from ledger_indexer.engine.client import IndexerEngine
    from ledger_indexer.engine.services.parcel_service import ParcelService


@pytest.fixture
def service(engine: IndexerEngine) -> ParcelService:
    return engine.parcel_service


class TestParcelRecord:
    def test_receiver_from_payment(self) -> None:
        parcel = make_parcel("p" * 64, receiver=OTHER_PLATFORM_ADDRESS)
        assert parcel.receiver == OTHER_PLATFORM_ADDRESS
        assert parcel.to_document()["receiver"] == OTHER_PLATFORM_ADDRESS

    def test_no_receiver(self) -> None:
        assert make_parcel("p" * 64).receiver is None


class TestLifecycle:
    async def test_index_and_get(self, service: ParcelService) -> None:
        parcel = make_parcel("a" * 64, receiver=OTHER_PLATFORM_ADDRESS)
        await service.index_parcel(parcel)
        assert await service.get_parcel("a" * 64) == parcel

    async def test_get_unknown(self, service: ParcelService) -> None:
        assert await service.get_parcel("f" * 64) is None

    async def test_retracted_hidden_but_still_stored(self, service: ParcelService) -> None:
        await service.index_parcel(make_parcel("a" * 64))
        await service.retract_parcel("a" * 64)

        assert await service.get_parcel("a" * 64) is None
        record = await service.get_parcel_record("a" * 64)
        assert record is not None
        assert record.is_retracted is True

    async def test_reindex_after_retraction(self, service: ParcelService) -> None:
        await service.index_parcel(make_parcel("a" * 64, block_number=5))
        await service.retract_parcel("a" * 64)
        await service.index_parcel(make_parcel("a" * 64, block_number=7))

        parcel = await service.get_parcel("a" * 64)
        assert parcel is not None
        assert parcel.block_number == 7
        assert await service.count_parcels() == 1

    async def test_retract_unknown_raises(self, service: ParcelService) -> None:
        with pytest.raises(NotFoundError):
            await service.retract_parcel("f" * 64)


class TestListings:
    @pytest.fixture(autouse=True)
    async def _seed(self, service: ParcelService) -> None:
        # 8 parcels signed by PLATFORM_ADDRESS, 2 paying it, 1 unrelated, 1 retracted
        for i in range(8):
            await service.index_parcel(make_parcel(f"s{i:063d}", block_number=i))
        for i in range(2):
            await service.index_parcel(
                make_parcel(
                    f"r{i:063d}",
                    block_number=10 + i,
                    signer=OTHER_PLATFORM_ADDRESS,
                    receiver=PLATFORM_ADDRESS,
                )
            )
        await service.index_parcel(
            make_parcel("u" * 64, block_number=20, signer=OTHER_PLATFORM_ADDRESS)
        )
        await service.index_parcel(make_parcel("x" * 64, block_number=30))
        await service.retract_parcel("x" * 64)

    async def test_count_parcels(self, service: ParcelService) -> None:
        assert await service.count_parcels() == 11

    async def test_count_by_address(self, service: ParcelService) -> None:
        assert await service.count_parcels_by_address(PLATFORM_ADDRESS) == 10
        assert await service.count_parcels_by_address(OTHER_PLATFORM_ADDRESS) == 3

    async def test_list_parcels_newest_first(self, service: ParcelService) -> None:
        page = await service.list_parcels(page_size=3)
        assert [p.block_number for p in page.records] == [20, 11, 10]
        assert page.next_cursor is not None

    async def test_list_parcels_walk(self, service: ParcelService) -> None:
        seen: list[str] = []
        cursor = None
        while True:
            page = await service.list_parcels(cursor=cursor, page_size=4)
            seen.extend(p.hash for p in page.records)
            if page.next_cursor is None:
                break
            cursor = page.next_cursor
        assert len(seen) == 11
        assert len(set(seen)) == 11
        assert "x" * 64 not in seen

    async def test_by_address_default_page_size(self, service: ParcelService) -> None:
        first = await service.list_parcels_by_address(PLATFORM_ADDRESS)
        assert [p.block_number for p in first] == [11, 10, 7, 6, 5, 4]

    async def test_by_address_second_page(self, service: ParcelService) -> None:
        second = await service.list_parcels_by_address(PLATFORM_ADDRESS, page=2)
        assert [p.block_number for p in second] == [3, 2, 1, 0]

    async def test_by_address_pages_do_not_overlap(self, service: ParcelService) -> None:
        pages = [
            await service.list_parcels_by_address(PLATFORM_ADDRESS, page=n, page_size=3)
            for n in range(1, 5)
        ]
        hashes = [p.hash for page in pages for p in page]
        assert len(hashes) == 10
        assert len(set(hashes)) == 10

    async def test_by_address_page_zero_rejected(self, service: ParcelService) -> None:
        with pytest.raises(InvalidQueryError):
            await service.list_parcels_by_address(PLATFORM_ADDRESS, page=0)


# ---------------------------------------------------------------------------
# Query metrics
# ---------------------------------------------------------------------------


class TestQueryMetrics:
    @staticmethod
    def _observed(engine: IndexerEngine, query: str) -> float | None:
        assert engine.metrics is not None
        return engine.metrics.registry.get_sample_value(
            "ledger_indexer_query_seconds_count", {"query": query}
        )

    async def test_count_parcels_is_timed(self, engine: IndexerEngine) -> None:
        await engine.parcel_service.count_parcels()
        assert self._observed(engine, "count_parcels") == 1.0

    async def test_count_by_address_is_timed(self, engine: IndexerEngine) -> None:
        await engine.parcel_service.count_parcels_by_address(PLATFORM_ADDRESS)
        await engine.parcel_service.count_parcels_by_address(OTHER_PLATFORM_ADDRESS)
        assert self._observed(engine, "count_parcels_by_address") == 2.0
