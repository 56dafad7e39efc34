"""
Module: harvest_kernel.models.inventory
Responsibility: ORM persistence for the product catalogue slice the engine
    reads: categories (consumable vs. durable tool), products (expected
    lifespan in uses) and inventory lots.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Category.is_divisible may be NULL on rows written before the flag
      existed; NULL means divisible.  The flag is interpreted exactly once,
      by harvest_kernel.domain.cost_model.resolve_cost_model().

Non-goals:
    - Lot quantities, movements and reservation bookkeeping belong to the
      inventory ledger and are not modelled here.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from harvest_kernel.db.base import TrackedBase, UUIDString


class Category(TrackedBase):
    """Product category; decides the cost model of its products."""

    __tablename__ = "product_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    is_divisible: Mapped[bool | None] = mapped_column(
        Boolean,
        nullable=True,
        default=True,
    )

    products: Mapped[list["Product"]] = relationship(back_populates="category")


class Product(TrackedBase):
    """A catalogued input: fertilizer, seed, tool..."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    category_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("product_categories.id"),
        nullable=True,
    )

    # Expected number of uses of a durable tool before replacement
    average_lifespan_uses: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )

    category: Mapped["Category | None"] = relationship(back_populates="products")

    lots: Mapped[list["InventoryLot"]] = relationship(back_populates="product")

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.name}>"


class InventoryLot(TrackedBase):
    """A lot of a product held in stock."""

    __tablename__ = "inventory_lots"

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    lot_code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    product: Mapped["Product"] = relationship(back_populates="lots")
