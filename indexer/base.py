from abc import ABC, abstractmethod
from datamodels import SymbolIndex


class IndexFormatError(ValueError):
    """Raised when a source cannot be read as a symbol index."""


class SymbolIndexer(ABC):
    @property
    @abstractmethod
    def suffix(self) -> list[str]:
        """File suffixes handled (e.g., '.js')"""
        pass

    @abstractmethod
    def read_index(self, code: str, name: str = "index") -> SymbolIndex:
        """Build the symbol index held in (or described by) a single file"""
        pass
