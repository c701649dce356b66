import logging
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from .core import DomNode, Document

logger = logging.getLogger(__name__)


class StaticNode(DomNode):
    """DomNode backed by a BeautifulSoup Tag."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag):
        self._tag = tag

    @property
    def tag_name(self) -> str:
        return self._tag.name

    @property
    def text(self) -> str:
        return self._tag.get_text()

    def attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        # multi_valued_attributes is disabled, but stay safe for foreign soups
        if isinstance(value, list):
            return " ".join(value)
        return value

    def parent(self) -> Optional[DomNode]:
        parent = self._tag.parent
        if parent is None or not isinstance(parent, Tag) or isinstance(parent, BeautifulSoup):
            return None
        return StaticNode(parent)

    def query(self, selector: str) -> List[DomNode]:
        return [StaticNode(tag) for tag in self._tag.select(selector)]

    def __eq__(self, other) -> bool:
        return isinstance(other, StaticNode) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"StaticNode(<{self.tag_name}>)"


class StaticDocument(Document):
    """Document built from extracted template markup."""

    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    def query(self, selector: str) -> List[DomNode]:
        return [StaticNode(tag) for tag in self._soup.select(selector)]


class DOMBuilder:
    """
    Parses markup into a StaticDocument.

    Uses the stdlib-backed 'html.parser' tree builder, which keeps fragments
    (partials without <html>/<body>) as-is instead of wrapping them.
    """

    def parse(self, markup: str) -> StaticDocument:
        clean_markup = (markup or "").replace("\ufeff", "")
        soup = BeautifulSoup(clean_markup, "html.parser", multi_valued_attributes=None)
        logger.debug("Parsed %d characters of markup.", len(clean_markup))
        return StaticDocument(soup)
