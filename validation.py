from typing import List, Optional

from anchors import AnchorKind, classify_fragment, enum_hash_of, member_hash, parse_anchor
from datamodels import IndexEntry, IndexIssue, SymbolIndex
from logger import logger


class IndexValidationError(ValueError):
    """Raised by check_index when a table breaks its integrity rules."""

    def __init__(self, index_name: str, issues: List[IndexIssue]):
        self.issues = issues
        details = "; ".join(f"{issue.code}: {issue.message}" for issue in issues)
        super().__init__(f"Index {index_name} has {len(issues)} error(s): {details}")


def validate_index(index: SymbolIndex) -> List[IndexIssue]:
    """
    Checks the structural rules of a symbol index table.

    Errors: blank names, missing or malformed anchors, anchors used twice, and
    entries carrying both inline children and a children reference.
    Warnings: anchors pointing at another page, and grouped enumerators whose
    anchor belongs to a different enum than the one they are listed under.

    Args:
        index (SymbolIndex): The table to check.

    Returns:
        List[IndexIssue]: Findings in table order; empty when the table is clean.
    """
    issues: List[IndexIssue] = []
    seen: dict[str, str] = {}

    def report(severity, code, entry: IndexEntry, message):
        issues.append(IndexIssue(severity=severity, code=code, name=entry.name,
                                 anchor=entry.anchor, message=message))

    def check(entry: IndexEntry, path: str, parent: Optional[IndexEntry]):
        if not entry.name.strip():
            report("error", "empty-name", entry, f"Entry under {path or 'the root'} has no name")

        qualified = f"{path}.{entry.name}" if path else entry.name

        if entry.children is not None and entry.children_ref is not None:
            report("error", "mixed-children", entry,
                   f"{qualified} has both inline children and a reference to {entry.children_ref}")

        if not entry.anchor or not entry.anchor.strip():
            report("error", "empty-anchor", entry, f"{qualified} has no anchor")
        else:
            if entry.anchor in seen:
                report("error", "duplicate-anchor", entry,
                       f"{qualified} reuses the anchor of {seen[entry.anchor]}")
            else:
                seen[entry.anchor] = qualified
            check_anchor(entry, qualified, parent)

        for child in entry.children or []:
            check(child, qualified, entry)

    def check_anchor(entry: IndexEntry, qualified: str, parent: Optional[IndexEntry]):
        try:
            ref = parse_anchor(entry.anchor)
        except ValueError as e:
            report("error", "malformed-anchor", entry, str(e))
            return
        if not ref.fragment:
            report("error", "malformed-anchor", entry, f"{qualified} has an empty fragment")
            return

        if ref.page and ref.page != index.page:
            report("warning", "page-mismatch", entry, f"{qualified} points into {ref.page}, not {index.page}")

        if parent is None or not parent.anchor or classify_fragment(ref.fragment) != AnchorKind.GROUP_ENUMVALUE:
            return
        _, sep, parent_fragment = parent.anchor.partition("#")
        owner = member_hash(parent_fragment) if sep else None
        if owner is not None and enum_hash_of(ref.fragment) != owner:
            report("warning", "foreign-enumerator", entry,
                   f"{qualified} is anchored to a different enum than {parent.name}")

    for entry in index.entries:
        check(entry, "", None)

    return issues


def check_index(index: SymbolIndex) -> List[IndexIssue]:
    """
    Validates a table, logging every finding.

    Returns:
        List[IndexIssue]: The warnings, when there are no errors.

    Raises:
        IndexValidationError: If any finding is an error.
    """
    issues = validate_index(index)
    for issue in issues:
        log = logger.error if issue.severity == "error" else logger.warning
        log(f"{index.name}: [{issue.code}] {issue.message}")

    errors = [issue for issue in issues if issue.severity == "error"]
    if errors:
        raise IndexValidationError(index.name, errors)

    logger.info(f"Index {index.name} passed validation with {len(issues)} warning(s)")
    return issues
