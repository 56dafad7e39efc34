"""
CostModel -- how a reservation's product is charged to production.

Responsibility:
    Replace the nullable "is divisible" flag and optional lifespan of the
    product catalogue with an explicit two-variant type, resolved once when
    the product and its category are loaded:

        Divisible                       consumable, charged pro rata
        NonDivisible(lifespan_uses)     durable tool, depreciated per use

    The cost allocation engine then matches on the variant instead of
    re-reading nullable columns.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A missing category or a NULL ``is_divisible`` flag resolves to
      Divisible (rows written before the flag existed).
    - NonDivisible.lifespan_uses is None or an int; ``has_lifespan`` is True
      only for a strictly positive lifespan.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Divisible:
    """Consumable product: cost is proportional to quantity used."""


@dataclass(frozen=True, slots=True)
class NonDivisible:
    """Durable tool: cost is amortized over an expected number of uses."""

    lifespan_uses: int | None = None

    @property
    def has_lifespan(self) -> bool:
        return self.lifespan_uses is not None and self.lifespan_uses > 0


CostModel = Divisible | NonDivisible


def resolve_cost_model(
    is_divisible: bool | None,
    lifespan_uses: int | None = None,
) -> CostModel:
    """
    Resolve the catalogue flags of a product into its CostModel.

    Args:
        is_divisible: Category flag; None when the category or flag is absent.
        lifespan_uses: Product's average lifespan in uses, if declared.

    Returns:
        Divisible() unless the category is explicitly non-divisible.
    """
    if is_divisible is None or is_divisible:
        return Divisible()
    return NonDivisible(lifespan_uses=lifespan_uses)
