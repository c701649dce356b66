import abc
from typing import List, Optional


class DomNode(metaclass=abc.ABCMeta):
    """
    Node contract shared by every document source.

    Rule checks only talk to this interface, so the same check runs against
    markup extracted from a template and against a live browser session.
    """

    @property
    @abc.abstractmethod
    def tag_name(self) -> str:
        """Lower-case tag name."""

    @property
    @abc.abstractmethod
    def text(self) -> str:
        """Concatenated text content of the node and its descendants."""

    @abc.abstractmethod
    def attribute(self, name: str) -> Optional[str]:
        """
        Returns the attribute value, "" for a present-but-empty attribute and
        None when the attribute is absent.
        """

    @abc.abstractmethod
    def parent(self) -> Optional["DomNode"]:
        """The enclosing element, or None at the top of the tree."""

    @abc.abstractmethod
    def query(self, selector: str) -> List["DomNode"]:
        """Descendants matching a CSS selector, in document order."""

    def has_attribute(self, name: str) -> bool:
        return self.attribute(name) is not None

    def has_value(self, name: str) -> bool:
        """True when the attribute is present and not blank."""
        value = self.attribute(name)
        return value is not None and bool(value.strip())


class Document(metaclass=abc.ABCMeta):
    """A queryable tree of DomNodes."""

    @abc.abstractmethod
    def query(self, selector: str) -> List[DomNode]:
        """All matching nodes in document order; an empty list when nothing matches."""

    def exists(self, selector: str) -> bool:
        return bool(self.query(selector))

    def first(self, selector: str) -> Optional[DomNode]:
        nodes = self.query(selector)
        return nodes[0] if nodes else None
