"""Thin typed wrapper over a BeautifulSoup tree.

Extractors only talk to ``Node`` so they can be driven by small synthetic
HTML snippets in tests, and so a future parser swap stays local.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag


class Node:
    __slots__ = ("_tag",)

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def find_all(self, selector: str) -> list[Node]:
        """CSS *selector* matches below this node, in document order."""
        return [Node(t) for t in self._tag.select(selector)]

    def find(self, selector: str) -> Node | None:
        tag = self._tag.select_one(selector)
        return Node(tag) if tag is not None else None

    def cells(self) -> list[Node]:
        """Direct ``td`` children (for table rows)."""
        return self.find_all(":scope > td")

    @property
    def text(self) -> str:
        return self._tag.get_text(strip=True)

    def attr(self, name: str) -> str | None:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return value

    def child_text_nodes(self) -> list[str]:
        """Every non-blank text node below this node, stripped."""
        return list(self._tag.stripped_strings)

    def __repr__(self) -> str:
        return f"<Node {self._tag.name}>"


class Document(Node):
    __slots__ = ()

    @classmethod
    def parse(cls, markup: str) -> Document:
        return cls(BeautifulSoup(markup, "html.parser"))
