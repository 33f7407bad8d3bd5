"""
Stock query selector.

Read-only answers about what a store holds:

- available_stock(): on-hand quantity of one product (sum of remaining
  quantity over non-exhausted lots).
- check_available_stock(): batch sufficiency check that reports EVERY short
  product, never just the first.
- list_lots(): lots of one product in FIFO order.
- stock_valuation(): per product on-hand quantity, weighted average cost of
  the remaining lots and the resulting stock value.

There are no stored balances; every figure is derived from purchase_lots.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select

from inventory_kernel.db.types import to_decimal
from inventory_kernel.domain.dtos import (
    UNKNOWN_PRODUCT_NAME,
    PurchaseLotDTO,
    StockCheckResult,
    StockShortfall,
    TransferItemInput,
)
from inventory_kernel.models.purchase_lot import PurchaseLot
from inventory_kernel.models.reference import Product
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.reference_selector import (
    ProductDirectory,
    SqlProductDirectory,
)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class StockPosition:
    """Current holding of one product at one store."""

    product_id: str
    product_name: str
    quantity: Decimal
    average_unit_cost: Decimal
    stock_value: Decimal


class StockSelector(BaseSelector[PurchaseLot]):
    """Selector for stock levels derived from purchase lots."""

    def available_stock(self, store_id: str, product_id: str) -> Decimal:
        total = self.session.execute(
            select(func.coalesce(func.sum(PurchaseLot.remaining_quantity), 0)).where(
                PurchaseLot.store_id == store_id,
                PurchaseLot.product_id == product_id,
                PurchaseLot.remaining_quantity > 0,
            )
        ).scalar_one()
        return to_decimal(total)

    def check_available_stock(
        self,
        store_id: str,
        items: Iterable[TransferItemInput],
        products: ProductDirectory | None = None,
        unknown_product_name: str = UNKNOWN_PRODUCT_NAME,
    ) -> StockCheckResult:
        """
        Check every requested product against available stock.

        Lines repeating a product are checked against their summed quantity.
        Shortfalls are reported in order of first appearance.
        """
        products = products or SqlProductDirectory(self.session)

        requested: dict[str, Decimal] = {}
        for item in items:
            requested[item.product_id] = requested.get(item.product_id, _ZERO) + item.quantity

        shortfalls: list[StockShortfall] = []
        for product_id, quantity in requested.items():
            available = self.available_stock(store_id, product_id)
            if available < quantity:
                product = products.get_product(product_id)
                shortfalls.append(
                    StockShortfall(
                        product_id=product_id,
                        product_name=product.name if product else unknown_product_name,
                        requested_quantity=quantity,
                        available_quantity=available,
                    )
                )

        return StockCheckResult(sufficient=not shortfalls, shortfalls=tuple(shortfalls))

    def list_lots(
        self,
        store_id: str,
        product_id: str,
        include_exhausted: bool = False,
    ) -> list[PurchaseLotDTO]:
        stmt = select(PurchaseLot).where(
            PurchaseLot.store_id == store_id,
            PurchaseLot.product_id == product_id,
        )
        if not include_exhausted:
            stmt = stmt.where(PurchaseLot.remaining_quantity > 0)
        stmt = stmt.order_by(PurchaseLot.import_date, PurchaseLot.id)
        return [lot.to_dto() for lot in self.session.execute(stmt).scalars()]

    def stock_valuation(self, store_id: str) -> list[StockPosition]:
        """
        Value the remaining stock of every product at a store.

        The average unit cost is weighted by remaining quantity, so exhausted
        lots do not influence it.
        """
        rows = self.session.execute(
            select(
                PurchaseLot.product_id,
                Product.name,
                func.sum(PurchaseLot.remaining_quantity),
                func.sum(PurchaseLot.remaining_quantity * PurchaseLot.unit_cost),
            )
            .outerjoin(Product, Product.id == PurchaseLot.product_id)
            .where(
                PurchaseLot.store_id == store_id,
                PurchaseLot.remaining_quantity > 0,
            )
            .group_by(PurchaseLot.product_id, Product.name)
            .order_by(PurchaseLot.product_id)
        ).all()

        positions = []
        for product_id, name, quantity, value in rows:
            quantity = to_decimal(quantity)
            value = to_decimal(value)
            positions.append(
                StockPosition(
                    product_id=product_id,
                    product_name=name or UNKNOWN_PRODUCT_NAME,
                    quantity=quantity,
                    average_unit_cost=value / quantity if quantity else _ZERO,
                    stock_value=value,
                )
            )
        return positions
