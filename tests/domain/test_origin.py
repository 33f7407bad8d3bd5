"""Tests for LotOrigin, the tagged provenance of a purchase lot."""

from uuid import uuid4

import pytest

from inventory_kernel.domain.origin import LotOrigin, OriginType


class TestLotOrigin:
    def test_purchase_without_order(self):
        origin = LotOrigin.purchased()

        assert origin.origin_type is OriginType.PURCHASE
        assert origin.purchase_order_id is None
        assert origin.source_transfer_id is None
        assert not origin.is_transfer

    def test_purchase_with_order(self):
        origin = LotOrigin.purchased("PO-2025-001")

        assert origin.purchase_order_id == "PO-2025-001"
        assert origin.source_transfer_id is None

    def test_transfer_origin_carries_transfer_id(self):
        transfer_id = uuid4()
        origin = LotOrigin.transferred_in(transfer_id)

        assert origin.is_transfer
        assert origin.source_transfer_id == str(transfer_id)
        assert origin.purchase_order_id is None

    def test_transfer_origin_requires_reference(self):
        with pytest.raises(ValueError, match="source transfer id"):
            LotOrigin(OriginType.TRANSFER, None)

    def test_origin_type_must_be_enum(self):
        with pytest.raises(ValueError):
            LotOrigin("purchase", None)

    def test_immutable(self):
        origin = LotOrigin.purchased()
        with pytest.raises(AttributeError):
            origin.reference_id = "x"

    def test_str(self):
        assert str(LotOrigin.purchased()) == "purchase:-"
        assert str(LotOrigin.purchased("PO-1")) == "purchase:PO-1"
