"""
Module: harvest_kernel.selectors.sale_selector
Responsibility: Sales recorded against a harvest.
"""

from uuid import UUID

from sqlalchemy import select

from harvest_kernel.domain.dtos import SaleLine
from harvest_kernel.models.harvest import Sale
from harvest_kernel.selectors.base import BaseSelector


class SaleSelector(BaseSelector):
    """Read access to sales."""

    def list_by_harvest(self, harvest_id: UUID) -> list[SaleLine]:
        sales = self.session.execute(
            select(Sale)
            .where(Sale.harvest_id == harvest_id)
            .order_by(Sale.sale_date, Sale.id)
        ).scalars().all()

        return [SaleLine.from_model(s) for s in sales]
