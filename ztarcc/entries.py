"""
Dictionary entry store for ztarcc.

Raw dictionaries use the OpenCC text format, one entry per line:

    source<TAB>candidate1 candidate2 ...

The position of a candidate on its line is its rank (0 = default).
A file parses into a Tier; tiers are merged into a profile's entry map
in priority order, later tiers replacing earlier ones key by key.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from ztarcc.errors import ParseError

logger = logging.getLogger(__name__)

# Prefix marking a reversed tier reference in a profile manifest
REVERSED_PREFIX = "!"


# ============================================================================
# Data Structures
# ============================================================================

class Candidate(NamedTuple):
    """One possible replacement for a dictionary source string."""
    target: str
    rank: int


@dataclass(frozen=True, slots=True)
class DictionaryEntry:
    """
    A source string and its ranked replacement candidates.

    Attributes:
        source: The text being replaced (one or more characters)
        candidates: Replacements, most preferred first
    """
    source: str
    candidates: Tuple[Candidate, ...]

    def __post_init__(self):
        if not self.source:
            raise ValueError("dictionary entry source must be non-empty")
        if not self.candidates:
            raise ValueError(f"dictionary entry {self.source!r} has no candidates")
        ranks = [c.rank for c in self.candidates]
        if ranks != sorted(ranks):
            raise ValueError(f"candidates for {self.source!r} are not ordered by rank")

    @classmethod
    def from_targets(cls, source: str, targets: Iterable[str]) -> "DictionaryEntry":
        """Build an entry whose candidate ranks follow the order of ``targets``."""
        return cls(source, tuple(Candidate(t, rank) for rank, t in enumerate(targets)))

    @property
    def default(self) -> str:
        """The rank-0 target."""
        return self.candidates[0].target

    @property
    def targets(self) -> Tuple[str, ...]:
        return tuple(c.target for c in self.candidates)

    @property
    def is_identity(self) -> bool:
        """True if the default candidate maps the source onto itself."""
        return self.source == self.candidates[0].target


@dataclass(frozen=True, slots=True)
class Tier:
    """A named dictionary loaded from one source file."""
    name: str
    entries: Tuple[DictionaryEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def as_dict(self) -> Dict[str, DictionaryEntry]:
        return {entry.source: entry for entry in self.entries}

    def identity_count(self) -> int:
        """Number of entries that map their source onto itself."""
        return sum(1 for entry in self.entries if entry.is_identity)

    def reversed(self) -> "Tier":
        """
        Build the inverse tier.

        The default target of every entry becomes a key mapping back to its
        source. Sources sharing a target become candidates of that key in
        the order they appear in this tier.

        Returns:
            A new Tier named ``!<name>``
        """
        inverse: Dict[str, List[str]] = {}
        for entry in self.entries:
            sources = inverse.setdefault(entry.default, [])
            if entry.source not in sources:
                sources.append(entry.source)
        return Tier(
            name=REVERSED_PREFIX + self.name,
            entries=tuple(
                DictionaryEntry.from_targets(target, sources)
                for target, sources in inverse.items()
            ),
        )


# ============================================================================
# Parsing
# ============================================================================

def parse_tier_lines(
    name: str,
    lines: Iterable[str],
    path: Optional[Union[str, Path]] = None,
) -> Tier:
    """
    Parse dictionary lines into a Tier.

    Args:
        name: Tier name
        lines: Lines in ``source<TAB>candidates`` format
        path: File the lines came from, used in error messages

    Returns:
        The parsed Tier

    Raises:
        ParseError: On a malformed line or a duplicated source key
    """
    origin = path if path is not None else f"<{name}>"
    entries: List[DictionaryEntry] = []
    seen: Dict[str, int] = {}

    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        if not line.strip() or line.startswith("#"):
            continue

        source, sep, rest = line.partition("\t")
        if not sep:
            raise ParseError(origin, line_number, "missing tab between source and candidates")
        source = source.strip()
        if not source:
            raise ParseError(origin, line_number, "empty source")

        targets = rest.split()
        if not targets:
            raise ParseError(origin, line_number, f"no candidate for {source!r}")

        if source in seen:
            raise ParseError(
                origin, line_number,
                f"duplicate key {source!r} (first defined on line {seen[source]})",
            )
        seen[source] = line_number
        entries.append(DictionaryEntry.from_targets(source, targets))

    return Tier(name=name, entries=tuple(entries))


def read_tier(path: Path, name: Optional[str] = None) -> Tier:
    """
    Read a tier file from disk.

    Args:
        path: Path to the ``.txt`` dictionary
        name: Tier name (defaults to the file stem)
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        tier = parse_tier_lines(name or path.stem, f, path=path)
    logger.info(f"  Parsed {path.name}: {len(tier)} entries")
    return tier


# ============================================================================
# Merging
# ============================================================================

def merge_tiers(tiers: Iterable[Tier]) -> Dict[str, DictionaryEntry]:
    """
    Merge tiers in priority order.

    A later tier's entry replaces an earlier tier's entry for the same
    source; candidate lists are never combined.

    Returns:
        Dict mapping source -> DictionaryEntry
    """
    merged: Dict[str, DictionaryEntry] = {}
    for tier in tiers:
        merged.update(tier.as_dict())
    return merged
