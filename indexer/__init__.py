from .base import IndexFormatError, SymbolIndexer
from .c_indexer import CHeaderIndexer
from .javascript_indexer import NavtreeScriptIndexer
from .json_indexer import JsonIndexer


def default_indexers() -> list[SymbolIndexer]:
    return [NavtreeScriptIndexer(), JsonIndexer(), CHeaderIndexer()]


__all__ = [
    "CHeaderIndexer",
    "IndexFormatError",
    "JsonIndexer",
    "NavtreeScriptIndexer",
    "SymbolIndexer",
    "default_indexers",
]
