"""
Store and product lookups.

The transfer engine only needs two facts about reference data: which tenant
owns a store, and what a product is called.  It consults them through the
StoreDirectory and ProductDirectory protocols so a host application can plug
in its own (cached, remote, ...) lookups.  The SQL-backed directories below
read the kernel's ``stores`` and ``products`` tables.
"""

from typing import Protocol, runtime_checkable

from inventory_kernel.domain.dtos import ProductRef, StoreRef
from inventory_kernel.models.reference import Product, Store
from inventory_kernel.selectors.base import BaseSelector


@runtime_checkable
class StoreDirectory(Protocol):
    def get_store(self, store_id: str) -> StoreRef | None:
        ...


@runtime_checkable
class ProductDirectory(Protocol):
    def get_product(self, product_id: str) -> ProductRef | None:
        ...


class SqlStoreDirectory(BaseSelector[Store]):
    """StoreDirectory over the ``stores`` table."""

    def get_store(self, store_id: str) -> StoreRef | None:
        store = self.session.get(Store, store_id)
        if store is None:
            return None
        return StoreRef(id=store.id, tenant_id=store.tenant_id, name=store.name)


class SqlProductDirectory(BaseSelector[Product]):
    """ProductDirectory over the ``products`` table."""

    def get_product(self, product_id: str) -> ProductRef | None:
        product = self.session.get(Product, product_id)
        if product is None:
            return None
        return ProductRef(id=product.id, name=product.name)
