import hashlib
import re
from enum import Enum
from typing import NamedTuple, Optional


class AnchorKind(str, Enum):
    COMPOUND = "compound"                # a00183
    MEMBER = "member"                    # a<md5>
    GROUP_MEMBER = "group member"        # ga<md5>
    GROUP_ENUMVALUE = "group enumvalue"  # gga<enum md5>a<value md5>
    OTHER = "other"


class AnchorRef(NamedTuple):
    page: str
    fragment: str

    def __str__(self) -> str:
        return f"{self.page}#{self.fragment}"


_HEX = "[0-9a-f]{32}"
_FRAGMENT_PATTERNS = [
    (AnchorKind.GROUP_ENUMVALUE, re.compile(f"^gga({_HEX})a({_HEX})$")),
    (AnchorKind.GROUP_MEMBER, re.compile(f"^ga({_HEX})$")),
    (AnchorKind.MEMBER, re.compile(f"^a({_HEX})$")),
    (AnchorKind.COMPOUND, re.compile(r"^a(\d+)$")),
]


def parse_anchor(anchor: str) -> AnchorRef:
    """
    Splits a link target into its page and fragment.

    Args:
        anchor (str): e.g. "a00022.html#a00183"

    Returns:
        AnchorRef: ("a00022.html", "a00183")

    Raises:
        ValueError: If the anchor has no "#" separator.
    """
    page, sep, fragment = anchor.partition("#")
    if not sep:
        raise ValueError(f"Anchor {anchor!r} has no fragment")
    return AnchorRef(page, fragment)


def classify_fragment(fragment: str) -> AnchorKind:
    for kind, pattern in _FRAGMENT_PATTERNS:
        if pattern.match(fragment):
            return kind
    return AnchorKind.OTHER


def enum_hash_of(fragment: str) -> Optional[str]:
    """Returns the owning enum's hash for a grouped enumerator fragment, else None."""
    match = _FRAGMENT_PATTERNS[0][1].match(fragment)
    return match.group(1) if match else None


def member_hash(fragment: str) -> Optional[str]:
    """Returns the hash part of a member or group member fragment, else None."""
    for kind, pattern in _FRAGMENT_PATTERNS[1:3]:
        match = pattern.match(fragment)
        if match:
            return match.group(1)
    return None


def symbol_hash(key: str) -> str:
    return hashlib.md5(key.encode("utf8")).hexdigest()


def member_fragment(key: str, grouped: bool = True) -> str:
    return ("ga" if grouped else "a") + symbol_hash(key)


def enumerator_fragment(enum_fragment: str, key: str) -> str:
    # The enumerator carries its enum's fragment: "g" + "ga<enum>" + "a<value>"
    return f"g{enum_fragment}a{symbol_hash(key)}"


def compound_fragment(compound_id: int) -> str:
    return f"a{compound_id:05d}"
