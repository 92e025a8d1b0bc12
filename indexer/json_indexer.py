import json
from pydantic import ValidationError
from .base import IndexFormatError, SymbolIndexer
from datamodels import IndexEntry, SymbolIndex


class JsonIndexer(SymbolIndexer):
    """
    Reads symbol indexes stored as JSON.

    Two layouts are accepted: a bare array of `{name, anchor, children}`
    objects (named after the file), or an object `{"name": ..., "entries": [...]}`.
    """

    @property
    def suffix(self) -> list[str]:
        return [".json"]

    def read_index(self, code: str, name: str = "index") -> SymbolIndex:
        try:
            data = json.loads(code)
        except json.JSONDecodeError as e:
            raise IndexFormatError(f"Invalid JSON: {e}") from e

        try:
            if isinstance(data, list):
                return SymbolIndex(name=name, entries=[IndexEntry.model_validate(item) for item in data])
            if isinstance(data, dict):
                if "entries" not in data:
                    raise IndexFormatError("JSON object has no \"entries\" list")
                data.setdefault("name", name)
                return SymbolIndex.model_validate(data)
        except ValidationError as e:
            raise IndexFormatError(f"Invalid index entry: {e}") from e

        raise IndexFormatError(f"Expected a JSON array or object, got {type(data).__name__}")
