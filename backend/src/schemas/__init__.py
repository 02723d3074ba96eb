"""Shared Pydantic schemas"""

from .pagination import Page, clamp_per_page, last_page, paginate

__all__ = ["Page", "clamp_per_page", "last_page", "paginate"]
