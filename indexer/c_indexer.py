import re
from tree_sitter_languages import get_parser
from typing import List, Optional
from .base import SymbolIndexer
from anchors import compound_fragment, enumerator_fragment, member_fragment
from datamodels import IndexEntry, SymbolIndex
from logger import logger


# Member sections in the order the generator lays out a header page
SECTION_ORDER = ("struct", "define", "typedef", "enum", "function", "variable")
DEFAULT_COMPOUND_BASE = 1

CONTAINER_TYPES = [
    "preproc_if",
    "preproc_ifdef",
    "preproc_else",
    "preproc_elif",
    "linkage_specification",
    "declaration_list",
    "ERROR",
]
DECLARATOR_TYPES = [
    "identifier",
    "field_identifier",
    "type_identifier",
    "pointer_declarator",
    "array_declarator",
    "function_declarator",
    "parenthesized_declarator",
    "init_declarator",
]
RECORD_TYPES = ["struct_specifier", "union_specifier"]

# `extern "C" {` and its closing brace sit in separate #if blocks, which the
# C grammar cannot nest; blank them out before parsing.
_CPLUSPLUS_GUARD = re.compile(
    r'(^[ \t]*#[ \t]*if(?:def[ \t]+__cplusplus|[ \t]+defined[ \t]*\(?[ \t]*__cplusplus[ \t]*\)?)[ \t]*\r?\n)'
    r'([ \t]*(?:extern[ \t]+"C"[ \t]*\{|\})[ \t]*)$',
    re.MULTILINE,
)


def _mask_cplusplus_guards(code: str) -> str:
    return _CPLUSPLUS_GUARD.sub(lambda m: m.group(1) + " " * len(m.group(2)), code)


class _Found:
    __slots__ = ("section", "name", "tag", "members")

    def __init__(self, section: str, name: str, tag: Optional[str] = None, members: Optional[List[str]] = None):
        self.section = section
        self.name = name
        self.tag = tag
        self.members = members


class CHeaderIndexer(SymbolIndexer):
    """
    Builds the navtree table the documentation generator would emit for a C
    header page, using Tree-sitter.

    Structs and unions list their fields, enums list their enumerators, and
    macros, typedefs, functions and variables are leaves. Top-level entries are
    grouped by page section (see SECTION_ORDER) and keep declaration order
    within a section.
    """

    def __init__(self, grouped: bool = True, documented_only: bool = False,
                 compound_base: int = DEFAULT_COMPOUND_BASE):
        self._parser = get_parser("c")
        self.grouped = grouped
        self.documented_only = documented_only
        self.compound_base = compound_base

    @property
    def parser(self):
        return self._parser

    @property
    def suffix(self) -> list[str]:
        return [".h"]

    def read_index(self, code: str, name: str = "index") -> SymbolIndex:
        """
        Indexes the declarations of one header.

        Args:
            code (str): The C header source.
            name (str): Page stem; anchors point into "<name>.html".

        Returns:
            SymbolIndex: Entries for every indexed symbol with generated anchors.
        """
        byte_code = _mask_cplusplus_guards(code).encode("utf8")
        tree = self.parser.parse(byte_code)
        root_node = tree.root_node
        found: List[_Found] = []
        seen = set()
        anonymous_enums = 0

        if root_node.has_error:
            logger.warning(f"Header for {name} has syntax errors; indexing what parses")

        def get_node_text(node):
            return byte_code[node.start_byte:node.end_byte].decode("utf8").strip()

        def is_documented(node):
            prev = node.prev_sibling
            return prev is not None and prev.type == "comment"

        def declarator_name(node):
            """Find the identifier a (possibly nested) declarator introduces."""
            if node.type in ["identifier", "field_identifier", "type_identifier"]:
                return get_node_text(node)
            inner = node.child_by_field_name("declarator")
            if inner is not None:
                return declarator_name(inner)
            for child in node.named_children:
                if child.type in DECLARATOR_TYPES:
                    name_ = declarator_name(child)
                    if name_:
                        return name_
            return None

        def declarators(node):
            type_node = node.child_by_field_name("type")
            skip = (type_node.start_byte, type_node.end_byte) if type_node else None
            for child in node.named_children:
                if skip and (child.start_byte, child.end_byte) == skip:
                    continue
                if child.type in DECLARATOR_TYPES:
                    yield child

        def is_function(declarator):
            while declarator is not None and declarator.type in ["pointer_declarator", "init_declarator"]:
                declarator = declarator.child_by_field_name("declarator")
            if declarator is None or declarator.type != "function_declarator":
                return False
            inner = declarator.child_by_field_name("declarator")
            return inner is not None and inner.type == "identifier"

        def field_names(body) -> List[str]:
            names = []
            for child in body.named_children:
                if child.type in CONTAINER_TYPES:
                    names.extend(field_names(child))
                elif child.type == "field_declaration":
                    decls = list(declarators(child))
                    type_node = child.child_by_field_name("type")
                    if not decls and type_node is not None and type_node.type in RECORD_TYPES:
                        # Anonymous struct/union members are flattened into the parent
                        inner_body = type_node.child_by_field_name("body")
                        if inner_body is not None:
                            names.extend(field_names(inner_body))
                    for decl in decls:
                        field = declarator_name(decl)
                        if field:
                            names.append(field)
            return names

        def enumerator_names(body) -> List[str]:
            names = []
            for child in body.named_children:
                if child.type in CONTAINER_TYPES:
                    names.extend(enumerator_names(child))
                elif child.type == "enumerator":
                    names.append(get_node_text(child.child_by_field_name("name")))
            return names

        def add(node, symbol: _Found):
            if symbol.name in seen:
                return
            if self.documented_only and not is_documented(node):
                return
            seen.add(symbol.name)
            found.append(symbol)

        def handle_specifier(node, typedef_name=None, owner=None) -> bool:
            """Register a struct/union/enum body; returns True if one was found."""
            nonlocal anonymous_enums
            body = node.child_by_field_name("body")
            if body is None:
                return False
            tag_node = node.child_by_field_name("name")
            tag = get_node_text(tag_node) if tag_node else None

            if node.type in RECORD_TYPES:
                symbol_name = typedef_name or tag
                if symbol_name:
                    add(owner or node, _Found("struct", symbol_name, tag or symbol_name, field_names(body)))
                return True

            symbol_name = typedef_name or tag
            if symbol_name:
                add(owner or node, _Found("enum", symbol_name, members=enumerator_names(body)))
            else:
                # Enumerators of an anonymous enum are listed on their own
                placeholder = f"@{anonymous_enums}"
                anonymous_enums += 1
                for enumerator in enumerator_names(body):
                    add(owner or node, _Found("enum", enumerator, tag=placeholder))
            return True

        def handle(node):
            if node.type in ["preproc_def", "preproc_function_def"]:
                if node.child_by_field_name("value") is not None:
                    add(node, _Found("define", get_node_text(node.child_by_field_name("name"))))

            elif node.type == "type_definition":
                type_node = node.child_by_field_name("type")
                claimed = False
                for decl in declarators(node):
                    typedef_name = declarator_name(decl)
                    if not typedef_name:
                        continue
                    if (not claimed and decl.type == "type_identifier" and type_node is not None
                            and type_node.type in RECORD_TYPES + ["enum_specifier"]):
                        claimed = handle_specifier(type_node, typedef_name, owner=node)
                        if claimed:
                            continue
                    add(node, _Found("typedef", typedef_name))

            elif node.type in RECORD_TYPES + ["enum_specifier"]:
                handle_specifier(node)

            elif node.type == "declaration":
                type_node = node.child_by_field_name("type")
                if type_node is not None and type_node.type in RECORD_TYPES + ["enum_specifier"]:
                    handle_specifier(type_node, owner=node)
                for decl in declarators(node):
                    symbol_name = declarator_name(decl)
                    if symbol_name:
                        add(node, _Found("function" if is_function(decl) else "variable", symbol_name))

            elif node.type == "function_definition":
                symbol_name = declarator_name(node.child_by_field_name("declarator"))
                if symbol_name:
                    add(node, _Found("function", symbol_name))

        def traverse(node):
            for child in node.named_children:
                if child.type in CONTAINER_TYPES:
                    traverse(child)
                else:
                    handle(child)

        traverse(root_node)
        index = SymbolIndex(name=name, entries=self._build_entries(found, f"{name}.html"))
        logger.info(f"Indexed {len(index.entries)} top-level symbols for {index.page}")
        return index

    def _build_entries(self, found: List[_Found], page: str) -> List[IndexEntry]:
        structs = sorted((s for s in found if s.section == "struct"), key=lambda s: s.tag.lower())
        compound_ids = {s.name: self.compound_base + i for i, s in enumerate(structs)}

        def build(symbol: _Found) -> IndexEntry:
            if symbol.section == "struct":
                return IndexEntry(
                    name=symbol.name,
                    anchor=f"{page}#{compound_fragment(compound_ids[symbol.name])}",
                    children=[
                        IndexEntry(name=field, anchor=f"{page}#{member_fragment(f'{symbol.name}::{field}', grouped=False)}")
                        for field in symbol.members
                    ],
                )

            if symbol.section == "enum" and symbol.members is None:
                # Enumerator of an anonymous enum; symbol.tag holds its "@N" placeholder
                enum_fragment = member_fragment(symbol.tag, grouped=self.grouped)
                return IndexEntry(
                    name=symbol.name,
                    anchor=f"{page}#{self._enumerator_fragment(enum_fragment, symbol.tag, symbol.name)}",
                )

            fragment = member_fragment(symbol.name, grouped=self.grouped)
            entry = IndexEntry(name=symbol.name, anchor=f"{page}#{fragment}")
            if symbol.section == "enum":
                entry.children = [
                    IndexEntry(name=value, anchor=f"{page}#{self._enumerator_fragment(fragment, symbol.name, value)}")
                    for value in symbol.members
                ]
            return entry

        ordered = sorted(found, key=lambda s: SECTION_ORDER.index(s.section))
        return [build(symbol) for symbol in ordered]

    def _enumerator_fragment(self, enum_fragment: str, enum_name: str, value: str) -> str:
        key = f"{enum_name}::{value}"
        if self.grouped:
            return enumerator_fragment(enum_fragment, key)
        return member_fragment(key, grouped=False)
