"""Tests for TransferSelector history queries."""

from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.dtos import TransferItemInput
from inventory_kernel.selectors.transfer_selector import TransferDirection


@pytest.fixture
def history(transfer_service, create_store, stores, create_product, create_lot, deterministic_clock):
    """Three transfers: A->B, B->A, A->D, one minute apart."""
    create_store("store-d", name="Store D")
    create_product("sku-1", "Cola")
    create_lot("store-a", "sku-1", 100, 2)
    create_lot("store-b", "sku-1", 100, 3)

    results = []
    for source, destination in [("store-a", "store-b"), ("store-b", "store-a"), ("store-a", "store-d")]:
        results.append(
            transfer_service.transfer_inventory(
                source, destination, [TransferItemInput("sku-1", Decimal("1"), "pcs")]
            )
        )
        deterministic_clock.advance(60)
    return results


class TestGetTransfer:
    def test_by_id(self, transfer_selector, history):
        transfer = transfer_selector.get_transfer(history[0].transfer_id)

        assert transfer.transfer_number == "TF2025010001"
        assert transfer.status == "completed"
        assert transfer.source_store_name == "Store A"
        assert len(transfer.items) == 1
        assert transfer.items[0].product_name == "Cola"
        assert transfer.items[0].total_cost == Decimal("2")

    def test_by_number(self, transfer_selector, history):
        transfer = transfer_selector.get_by_number("TF2025010002")

        assert transfer.id == history[1].transfer_id
        assert transfer.source_store_id == "store-b"

    def test_missing(self, transfer_selector, stores):
        assert transfer_selector.get_transfer(uuid4()) is None
        assert transfer_selector.get_by_number("TF2099010001") is None


class TestFindByStore:
    def test_both_directions_newest_first(self, transfer_selector, history):
        page = transfer_selector.find_by_store("store-a")

        assert page.total == 3
        assert [t.transfer_number for t in page.transfers] == [
            "TF2025010003",
            "TF2025010002",
            "TF2025010001",
        ]

    @pytest.mark.parametrize(
        "direction,expected",
        [
            (TransferDirection.SOURCE, ["TF2025010003", "TF2025010001"]),
            ("destination", ["TF2025010002"]),
        ],
    )
    def test_direction_filter(self, transfer_selector, history, direction, expected):
        page = transfer_selector.find_by_store("store-a", direction=direction)

        assert [t.transfer_number for t in page.transfers] == expected

    def test_pagination(self, transfer_selector, history):
        page = transfer_selector.find_by_store("store-a", page=2, page_size=2)

        assert page.total == 3
        assert page.total_pages == 2
        assert [t.transfer_number for t in page.transfers] == ["TF2025010001"]

    def test_headers_carry_no_items(self, transfer_selector, history):
        page = transfer_selector.find_by_store("store-d")

        assert page.transfers[0].items == ()
        assert page.transfers[0].item_count == 1

    def test_item_count_is_rows_per_consumed_lot(
        self, transfer_service, transfer_selector, stores, create_product, create_lot
    ):
        create_product("sku-1", "Cola")
        create_product("sku-2", "Chips")
        create_lot("store-a", "sku-1", 2, 1)
        create_lot("store-a", "sku-1", 2, 1)
        create_lot("store-a", "sku-2", 5, 1)
        transfer_service.transfer_inventory(
            "store-a",
            "store-b",
            [
                TransferItemInput("sku-1", Decimal("3"), "pcs"),
                TransferItemInput("sku-2", Decimal("1"), "pcs"),
            ],
        )

        (incoming,) = transfer_selector.find_by_store("store-b").transfers

        assert incoming.item_count == 3

    def test_rejects_bad_arguments(self, transfer_selector, stores):
        with pytest.raises(ValueError):
            transfer_selector.find_by_store("store-a", direction="sideways")
        with pytest.raises(ValueError):
            transfer_selector.find_by_store("store-a", page=0)


class TestGetItems:
    def test_rows_follow_fifo_order_within_product(
        self, transfer_service, transfer_selector, stores, create_product, create_lot
    ):
        create_product("sku-1", "Cola")
        create_product("sku-2", "Chips")
        lots = [create_lot("store-a", "sku-2", 2, cost) for cost in (5, 6, 7)]
        create_lot("store-a", "sku-1", 1, 9)
        result = transfer_service.transfer_inventory(
            "store-a",
            "store-b",
            [
                TransferItemInput("sku-2", Decimal("5"), "pcs"),
                TransferItemInput("sku-1", Decimal("1"), "pcs"),
            ],
        )

        items = transfer_selector.get_items(result.transfer_id)

        assert [(i.product_id, i.source_lot_id) for i in items[1:]] == [
            ("sku-2", lots[0].id),
            ("sku-2", lots[1].id),
            ("sku-2", lots[2].id),
        ]
        assert items[0].product_id == "sku-1"
        assert [i.quantity for i in items[1:]] == [Decimal("2"), Decimal("2"), Decimal("1")]
