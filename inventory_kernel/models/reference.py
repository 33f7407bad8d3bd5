"""
Module: inventory_kernel.models.reference
Responsibility: Minimal reference tables for stores and products.  The kernel
    only reads them: a store's owning tenant validates transfers, a product's
    name labels transfer results and stock shortfalls.
Architecture position: Kernel > Models.  May import from db/ only.

Non-goals:
    - Store and product CRUD belongs to the surrounding application; ids are
      the application's own string identifiers.
"""

from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class Store(Base):
    """A physical store owned by exactly one tenant."""

    __tablename__ = "stores"

    __table_args__ = (
        Index("idx_store_tenant", "tenant_id"),
    )

    id: Mapped[str] = mapped_column(String(100), primary_key=True)

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Store {self.id}: {self.name} (tenant={self.tenant_id})>"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.name}>"
