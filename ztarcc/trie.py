"""
Trie matcher for fast longest-prefix dictionary lookup.

Keys are indexed in a marisa_trie.Trie; the candidate list of each key is
kept in a table indexed by the trie's key id. A CompiledDictionary is
immutable once built and may be shared between threads.
"""

from typing import Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import marisa_trie

from ztarcc.entries import Candidate, DictionaryEntry
from ztarcc.errors import BuildError

CandidateList = Tuple[Candidate, ...]


class Match(NamedTuple):
    """Result of a longest-match lookup."""
    length: int
    candidates: CandidateList

    @property
    def default(self) -> str:
        return self.candidates[0].target


class CompiledDictionary:
    """
    Trie-indexed view of a merged set of dictionary entries.

    Lookup cost is bounded by the longest key, not by the number of keys.
    """

    __slots__ = ("_trie", "_candidates", "_max_key_length")

    def __init__(self, trie: marisa_trie.Trie, candidates: Sequence[CandidateList]):
        if len(candidates) != len(trie):
            raise ValueError(
                f"candidate table has {len(candidates)} rows for {len(trie)} keys"
            )
        self._trie = trie
        self._candidates: Tuple[CandidateList, ...] = tuple(candidates)
        self._max_key_length = max((len(key) for key in trie.iterkeys()), default=0)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, entries: Mapping[str, DictionaryEntry]) -> "CompiledDictionary":
        """
        Index merged entries.

        Args:
            entries: Dict mapping source -> DictionaryEntry

        Raises:
            BuildError: If an entry has no candidates
        """
        trie = marisa_trie.Trie(entries.keys())
        table: List[Optional[CandidateList]] = [None] * len(trie)
        for source, entry in entries.items():
            if not entry.candidates:
                raise BuildError(f"entry {source!r} has an empty candidate list")
            table[trie[source]] = tuple(entry.candidates)
        return cls(trie, table)

    @classmethod
    def empty(cls) -> "CompiledDictionary":
        """A dictionary with no keys; every character passes through."""
        return cls(marisa_trie.Trie(), ())

    @classmethod
    def from_parts(cls, trie_bytes: bytes, candidates: Sequence[CandidateList]) -> "CompiledDictionary":
        """Rebuild a dictionary from ``trie_bytes()`` output and its candidate table."""
        trie = marisa_trie.Trie()
        trie.frombytes(trie_bytes)
        return cls(trie, candidates)

    def trie_bytes(self) -> bytes:
        """Serialized trie (key ids are preserved)."""
        return self._trie.tobytes()

    @property
    def candidate_table(self) -> Tuple[CandidateList, ...]:
        """Candidate lists in key id order."""
        return self._candidates

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def max_key_length(self) -> int:
        return self._max_key_length

    def __len__(self) -> int:
        return len(self._candidates)

    def __contains__(self, key: str) -> bool:
        return key in self._trie

    def keys(self) -> List[str]:
        return self._trie.keys()

    def iterkeys(self) -> Iterable[str]:
        return self._trie.iterkeys()

    def lookup(self, key: str) -> Optional[CandidateList]:
        """Candidates for an exact key, or None."""
        if key not in self._trie:
            return None
        return self._candidates[self._trie[key]]

    def longest_match(self, text: str, position: int = 0, end: Optional[int] = None) -> Optional[Match]:
        """
        Find the longest key starting at ``position``.

        Args:
            text: Text being scanned
            position: Offset to match from
            end: Matches never extend past this offset (defaults to len(text))

        Returns:
            Match with the matched length and candidates, or None if no key
            starts with ``text[position]``
        """
        limit = len(text) if end is None else min(end, len(text))
        if position >= limit or not self._max_key_length:
            return None

        window = text[position:min(limit, position + self._max_key_length)]
        prefixes = self._trie.prefixes(window)
        if not prefixes:
            return None

        key = max(prefixes, key=len)
        return Match(len(key), self._candidates[self._trie[key]])

    def __repr__(self) -> str:
        return f"CompiledDictionary({len(self)} keys, max_key_length={self._max_key_length})"
