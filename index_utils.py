import json
from pathlib import Path
from typing import List, Dict, Union
from indexer.base import IndexFormatError, SymbolIndexer
from logger import logger
from datamodels import IndexEntry, SymbolIndex


def _js_string(value: str) -> str:
    # JSON string syntax is valid JavaScript; keep non-ASCII as-is like the generator
    return json.dumps(value, ensure_ascii=False)


def render_navtree_script(index: SymbolIndex) -> str:
    """
    Renders a symbol index as the generator's navtree script.

    The layout matches generator output byte for byte: top-level rows are
    indented four spaces, each nesting level adds two, and the script ends
    with `];` and no trailing newline.

    Args:
        index (SymbolIndex): The table to render.

    Returns:
        str: JavaScript source declaring `var <index.name>`.
    """
    lines = [f"var {index.name} =", "["]

    def render(entries: List[IndexEntry], depth: int):
        indent = " " * (4 + 2 * depth)
        for i, entry in enumerate(entries):
            sep = "," if i < len(entries) - 1 else ""
            anchor = _js_string(entry.anchor) if entry.anchor is not None else "null"
            head = f"{indent}[ {_js_string(entry.name)}, {anchor}, "

            if entry.children_ref is not None:
                lines.append(f"{head}{_js_string(entry.children_ref)} ]{sep}")
            elif entry.children is None:
                lines.append(f"{head}null ]{sep}")
            elif not entry.children:
                lines.append(f"{head}[ ] ]{sep}")
            else:
                lines.append(f"{head}[")
                render(entry.children, depth + 1)
                lines.append(f"{indent}] ]{sep}")

    render(index.entries, 0)
    lines.append("];")
    return "\n".join(lines)


def index_to_json_data(index: SymbolIndex, wrapped: bool = False) -> Union[list, dict]:
    entries = [entry.model_dump(exclude_none=True) for entry in index.entries]
    if wrapped:
        return {"name": index.name, "entries": entries}
    return entries


def save_index_to_json(
    index: SymbolIndex,
    output_path: Union[str, Path],
    wrapped: bool = False
):
    """
    Saves a symbol index to a JSON file.

    Args:
        index (SymbolIndex): The table to save.
        output_path (str | Path): Where to write the JSON file
        wrapped (bool): Write `{"name", "entries"}` instead of a bare entry array.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    json_data = index_to_json_data(index, wrapped=wrapped)
    output_path.write_text(json.dumps(json_data, indent=2, ensure_ascii=False), encoding="utf8")

    logger.info(f"Saved {index.count()} entries of {index.name} to {output_path}")


def save_index_to_navtree_script(
    index: SymbolIndex,
    output_path: Union[str, Path]
):
    """
    Saves a symbol index as a navtree script.

    Args:
        index (SymbolIndex): The table to save.
        output_path (str | Path): Where to write the `.js` file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    output_path.write_text(render_navtree_script(index), encoding="utf8")

    logger.info(f"Saved {index.count()} entries of {index.name} to {output_path}")


def load_index(
    path: Union[str, Path],
    indexers: List[SymbolIndexer]
) -> SymbolIndex:
    """
    Loads one file with the indexer registered for its suffix.

    Args:
        path (str | Path): A navtree script, JSON table or C header.
        indexers (List[SymbolIndexer]): Candidate indexers.

    Returns:
        SymbolIndex: The table, named after the file stem unless the format
        carries its own name, with `source` set to the path.

    Raises:
        IndexFormatError: If no indexer handles the suffix or the file is malformed.
    """
    path = Path(path)
    suffix_to_indexer = {
        suffix: indexer
        for indexer in indexers
        for suffix in indexer.suffix
    }

    indexer = suffix_to_indexer.get(path.suffix)
    if indexer is None:
        raise IndexFormatError(f"No indexer for {path.suffix!r} files ({path})")

    index = indexer.read_index(path.read_text(encoding="utf8"), name=path.stem)
    index.source = str(path)
    return index


def collect_indexes_in_docs(
    root_dir: Union[str, Path],
    indexers: List[SymbolIndexer]
) -> List[SymbolIndex]:
    """
    Walks a directory and loads every file one of the indexers supports.

    Files that fail to load are logged and skipped.

    Args:
        root_dir (str | Path): Root of a generated manual or a header tree.
        indexers (List[SymbolIndexer]): Indexers for the formats to pick up.

    Returns:
        List[SymbolIndex]: Loaded tables, in sorted path order.
    """
    root_dir = Path(root_dir)
    all_indexes: List[SymbolIndex] = []
    suffixes = {suffix for indexer in indexers for suffix in indexer.suffix}

    for file_path in sorted(root_dir.rglob("*")):
        if not file_path.is_file() or file_path.suffix not in suffixes:
            continue
        try:
            all_indexes.append(load_index(file_path, indexers))
        except (IndexFormatError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to load {file_path}: {e}")

    logger.info(f"Collected {len(all_indexes)} symbol indexes from {root_dir}")
    return all_indexes


def build_anchor_map(indexes: List[SymbolIndex]) -> Dict[str, str]:
    """
    Merges the anchor maps of several pages for cross-referencing.

    Values are qualified as "<index name>:<symbol path>". When two pages claim
    the same anchor the first one is kept and the clash is logged.
    """
    merged: Dict[str, str] = {}
    for index in indexes:
        for anchor, symbol in index.anchor_map().items():
            qualified = f"{index.name}:{symbol}"
            if anchor in merged:
                logger.warning(f"Anchor {anchor} of {qualified} already belongs to {merged[anchor]}")
                continue
            merged[anchor] = qualified
    return merged
