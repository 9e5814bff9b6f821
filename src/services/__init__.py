"""
Services Package

Contains service layer classes for:
- Page storage (flat text files, one per wiki page)
"""

from services.page_store import Page, PageStore, get_page_store

__all__ = ["Page", "PageStore", "get_page_store"]
