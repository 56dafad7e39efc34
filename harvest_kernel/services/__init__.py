"""Kernel service infrastructure."""

from harvest_kernel.services.base import BaseService

__all__ = ["BaseService"]
