"""Semantic Version: parse and order dotted engine version identifiers.

Invariants:
    - parse() never raises: missing components are 0, non-numeric segments are 0
    - Segments above MAX_SEGMENT (including ones too long to convert) parse as 0
    - Ordering is lexicographic over (major, minor, patch)
    - A fourth segment makes the patch component malformed ("1.2.3.4" -> 1.2.0)

Design Decisions:
    - order=True frozen dataclass: field order gives the comparison for free
"""

from dataclasses import dataclass


MAX_SEGMENT = 2**31 - 1


def _parse_int(segment: str) -> int:
    segment = segment.strip()
    if not segment.isdecimal():
        return 0
    try:
        value = int(segment)
    except ValueError:
        return 0
    return value if value <= MAX_SEGMENT else 0


@dataclass(frozen=True, order=True)
class SemanticVersion:
    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, version: str) -> "SemanticVersion":
        """Parse "M", "M.m" or "M.m.p". Malformed segments become 0."""
        parts = version.split(".", 2)
        parts += ["0"] * (3 - len(parts))
        major, minor, patch = parts
        return cls(_parse_int(major), _parse_int(minor), _parse_int(patch))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def compare(a: SemanticVersion, b: SemanticVersion) -> int:
    """Three-way comparison: -1, 0 or 1."""
    return (a > b) - (a < b)


def compare_strings(a: str, b: str) -> int:
    return compare(SemanticVersion.parse(a), SemanticVersion.parse(b))
