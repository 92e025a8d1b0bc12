from typing import Iterator, List, Literal, Tuple

from pydantic import BaseModel


class IndexEntry(BaseModel):
    name: str
    anchor: str | None = None  # "page.html#fragment"
    children: List["IndexEntry"] | None = None
    children_ref: str | None = None  # name of a separately loaded navtree script

    @property
    def is_leaf(self) -> bool:
        return not self.children and self.children_ref is None

    def walk(self, path: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], "IndexEntry"]]:
        """Yield (path, entry) pairs depth-first, parents before their children."""
        path = path + (self.name,)
        yield path, self
        for child in self.children or []:
            yield from child.walk(path)


IndexEntry.model_rebuild()


class SymbolIndex(BaseModel):
    """
    One generated navtree table: the symbols of a single reference page.

    `name` is the script variable the generator emits (e.g. "a00022"), which is
    also the stem of the page the anchors point into.
    """

    name: str
    entries: List[IndexEntry] = []
    source: str | None = None

    @property
    def page(self) -> str:
        return f"{self.name}.html"

    def walk(self) -> Iterator[Tuple[Tuple[str, ...], IndexEntry]]:
        for entry in self.entries:
            yield from entry.walk()

    def count(self) -> int:
        return sum(1 for _ in self.walk())

    def anchors(self) -> List[str]:
        return [entry.anchor for _, entry in self.walk() if entry.anchor]

    def anchor_map(self) -> dict[str, str]:
        """
        Maps every anchor to the dotted path of the symbol it belongs to.

        When an anchor repeats, the first occurrence wins.

        Returns:
            dict[str, str]: e.g. {"a00022.html#a20bd...": "sdma_config_t.ratio"}
        """
        mapping: dict[str, str] = {}
        for path, entry in self.walk():
            if entry.anchor and entry.anchor not in mapping:
                mapping[entry.anchor] = ".".join(path)
        return mapping

    def find_by_anchor(self, anchor: str) -> IndexEntry | None:
        for _, entry in self.walk():
            if entry.anchor == anchor:
                return entry
        return None

    def lookup(self, qualified_name: str) -> IndexEntry | None:
        """Resolves a dotted symbol path such as "sdma_handle_t.callback"."""
        for path, entry in self.walk():
            if ".".join(path) == qualified_name:
                return entry
        return None


class IndexIssue(BaseModel):
    severity: Literal["error", "warning"]
    code: str  # "duplicate-anchor", "page-mismatch", ...
    name: str
    anchor: str | None = None
    message: str
