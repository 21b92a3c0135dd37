"""Catalog domain - professionals and services offered by a tenant"""

from .router import router

__all__ = ["router"]
