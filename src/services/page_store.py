"""
Page Store

Wiki pages kept as flat text files: <data_dir>/<title>.txt
Titles are restricted to ASCII letters and digits so they map safely
onto file names.
"""

import re
from pathlib import Path

from fastapi import Request
from pydantic import BaseModel

from auth.errors import IOFailure, PageNotFound
from core.logger import get_logger

logger = get_logger(__name__)

VALID_TITLE = re.compile(r"^[a-zA-Z0-9]+$")


class Page(BaseModel):
    title: str
    body: str = ""

    def to_dict(self) -> dict:
        """JSON shape: body is left out when empty."""
        data = {"title": self.title}
        if self.body:
            data["body"] = self.body
        return data


class PageStore:
    def __init__(self, data_dir: str | Path):
        """
        Initialize Page Store

        Args:
            data_dir: Directory holding one <title>.txt file per page
        """
        self.data_dir = Path(data_dir)

    def _ensure_dir(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Cannot create data directory: {e.strerror}") from e

    def path_for(self, title: str) -> Path:
        if not VALID_TITLE.match(title):
            raise PageNotFound(title)
        return self.data_dir / f"{title}.txt"

    def exists(self, title: str) -> bool:
        self._ensure_dir()
        return self.path_for(title).is_file()

    def list_pages(self) -> list[Page]:
        """All pages by title, without bodies."""
        self._ensure_dir()
        try:
            names = sorted(p.name for p in self.data_dir.iterdir() if p.is_file())
        except OSError as e:
            raise IOFailure(f"Cannot list pages: {e.strerror}") from e
        return [Page(title=name.split(".")[0]) for name in names]

    def load(self, title: str) -> Page:
        """Return the page; a page that was never saved has an empty body."""
        path = self.path_for(title)
        if not self.exists(title):
            return Page(title=title)
        try:
            return Page(title=title, body=path.read_text(encoding="utf-8"))
        except OSError as e:
            raise IOFailure(f"Cannot read page {title}: {e.strerror}") from e

    def save(self, page: Page) -> Page:
        path = self.path_for(page.title)
        self._ensure_dir()
        try:
            path.write_text(page.body, encoding="utf-8")
        except OSError as e:
            raise IOFailure(f"Cannot write page {page.title}: {e.strerror}") from e
        logger.info(f"Saved page {page.title} ({len(page.body)} chars)")
        return page

    def delete(self, title: str) -> None:
        """Remove the page; deleting a missing page is not an error."""
        path = self.path_for(title)
        if not self.exists(title):
            return
        try:
            path.unlink()
        except OSError as e:
            raise IOFailure(f"Cannot delete page {title}: {e.strerror}") from e
        logger.info(f"Deleted page {title}")


def get_page_store(request: Request) -> PageStore:
    return request.app.state.page_store
