import re
from tree_sitter_languages import get_parser
from typing import List, Optional
from .base import IndexFormatError, SymbolIndexer
from datamodels import IndexEntry, SymbolIndex


_JS_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}
_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)",
    re.DOTALL,
)


def decode_string_literal(text: str) -> str:
    """
    Decodes a single- or double-quoted JavaScript string literal.

    Args:
        text (str): The literal including its quotes, e.g. '"a00022.html#a00183"'.

    Returns:
        str: The string value.
    """
    if len(text) < 2 or text[0] not in "\"'" or text[-1] != text[0]:
        raise IndexFormatError(f"Not a string literal: {text!r}")

    def replace(match):
        esc = match.group(1)
        if esc.startswith("u{"):
            code_point = int(esc[2:-1], 16)
            if code_point > 0x10FFFF:
                raise IndexFormatError(f"Code point escape out of range in {text!r}")
            return chr(code_point)
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        if esc.startswith("x") and len(esc) == 3:
            return chr(int(esc[1:], 16))
        if esc in _LINE_CONTINUATIONS:
            return ""
        return _JS_ESCAPES.get(esc, esc)

    value = _ESCAPE_RE.sub(replace, text[1:-1])
    # \uXXXX pairs may have produced UTF-16 surrogates
    try:
        return value.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeDecodeError as e:
        raise IndexFormatError(f"Unpaired surrogate escape in {text!r}") from e


class NavtreeScriptIndexer(SymbolIndexer):
    """
    Reads the navtree scripts a documentation generator writes next to each
    reference page, e.g.

        var a00022 =
        [
            [ "sdma_config_t", "a00022.html#a00183", [
              [ "ratio", "a00022.html#a20bd...", null ]
            ] ],
            ...
        ];

    Each row is `[ name, anchor, children ]` where `children` is `null`, a
    nested array of rows, or the name of another script to load lazily.
    """

    def __init__(self):
        self._parser = get_parser("javascript")

    @property
    def parser(self):
        return self._parser

    @property
    def suffix(self) -> list[str]:
        return [".js"]

    def read_index(self, code: str, name: str = "index") -> SymbolIndex:
        """
        Parses the first `var NAME = [ ... ]` declaration of a navtree script.

        Args:
            code (str): The script source.
            name (str): Unused; the index is named after the script variable.

        Returns:
            SymbolIndex: The table held by the script.

        Raises:
            IndexFormatError: On syntax errors, a missing array declaration or
                rows that are not `[ name, anchor, children ]`.
        """
        byte_code = code.encode("utf8")
        tree = self.parser.parse(byte_code)
        root_node = tree.root_node

        def get_node_text(node):
            return byte_code[node.start_byte:node.end_byte].decode("utf8")

        def where(node):
            return f"line {node.start_point[0] + 1}"

        def elements(array_node):
            return [c for c in array_node.named_children if c.type != "comment"]

        def read_string(node, what) -> str:
            if node.type != "string":
                raise IndexFormatError(f"Expected a string {what} at {where(node)}, got {node.type}")
            return decode_string_literal(get_node_text(node))

        def read_row(node) -> IndexEntry:
            if node.type != "array":
                raise IndexFormatError(f"Expected a [name, anchor, children] row at {where(node)}")

            items = elements(node)
            if len(items) not in (2, 3):
                raise IndexFormatError(f"Row at {where(node)} has {len(items)} elements, expected 3")

            entry_name = read_string(items[0], "name")
            anchor: Optional[str] = None
            if items[1].type != "null":
                anchor = read_string(items[1], "anchor")

            children: Optional[List[IndexEntry]] = None
            children_ref: Optional[str] = None
            if len(items) == 3:
                third = items[2]
                if third.type == "array":
                    children = [read_row(child) for child in elements(third)]
                elif third.type == "string":
                    children_ref = read_string(third, "children reference")
                elif third.type != "null":
                    raise IndexFormatError(f"Unexpected children value {third.type} at {where(third)}")

            return IndexEntry(name=entry_name, anchor=anchor, children=children, children_ref=children_ref)

        if root_node.has_error:
            raise IndexFormatError("Navtree script has syntax errors")

        for node in root_node.named_children:
            if node.type not in ["variable_declaration", "lexical_declaration"]:
                continue
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                value_node = declarator.child_by_field_name("value")
                name_node = declarator.child_by_field_name("name")
                if value_node is None or value_node.type != "array":
                    continue
                return SymbolIndex(
                    name=get_node_text(name_node) if name_node else name,
                    entries=[read_row(row) for row in elements(value_node)],
                )

        raise IndexFormatError("No `var NAME = [ ... ]` declaration found")
