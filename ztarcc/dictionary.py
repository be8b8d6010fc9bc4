"""
Compiled dictionary artifact for ztarcc.

The artifact is a single static file produced by ``python -m ztarcc.build``:

    [format_version: uint8][zlib-compressed payload]

The payload is a little-endian struct stream:

    profile_count: uint32
    per profile:
        name: str
        tier_count: uint16, then tier_count x str
        trie_size: uint32, then marisa_trie.Trie bytes
        entry_count: uint32, then per entry (in trie key id order):
            candidate_count: uint8
            candidate_count x (target: str, rank: int16)
    word_count: uint32, then word_count x str   (segmenter word list)

where ``str`` is a uint16 byte length followed by UTF-8 bytes.

The artifact is loaded once per process and never mutated afterwards.
"""

import logging
import struct
import threading
import time
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ztarcc import settings
from ztarcc.entries import Candidate
from ztarcc.errors import DecodeError
from ztarcc.profiles import Profile, Registry
from ztarcc.trie import CandidateList, CompiledDictionary

logger = logging.getLogger(__name__)

# ============================================================================
# Binary Schema
# ============================================================================

FORMAT_VERSION = 1

COUNT_FORMAT = "<I"
STR_LEN_FORMAT = "<H"
TIER_COUNT_FORMAT = "<H"
CANDIDATE_COUNT_FORMAT = "<B"
RANK_FORMAT = "<h"

MAX_STR_BYTES = 0xFFFF
MAX_CANDIDATES = 0xFF


@dataclass(frozen=True, slots=True)
class Artifact:
    """
    Decoded contents of a compiled dictionary.

    Attributes:
        profiles: Conversion profiles in manifest order
        words: Multi-character dictionary keys for the segmenter
    """
    profiles: Tuple[Profile, ...]
    words: Tuple[str, ...]

    def registry(self) -> Registry:
        return Registry(self.profiles)


# ============================================================================
# Encoding
# ============================================================================

def _pack_str(out: List[bytes], text: str):
    data = text.encode('utf-8')
    if len(data) > MAX_STR_BYTES:
        raise ValueError(f"string too long for artifact: {text[:20]!r}...")
    out.append(struct.pack(STR_LEN_FORMAT, len(data)))
    out.append(data)


def encode_payload(artifact: Artifact) -> bytes:
    """Serialize an artifact without compression or version header."""
    out: List[bytes] = [struct.pack(COUNT_FORMAT, len(artifact.profiles))]

    for profile in artifact.profiles:
        _pack_str(out, profile.name)
        out.append(struct.pack(TIER_COUNT_FORMAT, len(profile.tiers)))
        for tier in profile.tiers:
            _pack_str(out, tier)

        trie_bytes = profile.dictionary.trie_bytes()
        out.append(struct.pack(COUNT_FORMAT, len(trie_bytes)))
        out.append(trie_bytes)

        table = profile.dictionary.candidate_table
        out.append(struct.pack(COUNT_FORMAT, len(table)))
        for candidates in table:
            if len(candidates) > MAX_CANDIDATES:
                raise ValueError(f"too many candidates ({len(candidates)}) for one entry")
            out.append(struct.pack(CANDIDATE_COUNT_FORMAT, len(candidates)))
            for target, rank in candidates:
                _pack_str(out, target)
                out.append(struct.pack(RANK_FORMAT, rank))

    out.append(struct.pack(COUNT_FORMAT, len(artifact.words)))
    for word in artifact.words:
        _pack_str(out, word)

    return b''.join(out)


def encode_artifact(artifact: Artifact, level: int = settings.COMPRESSION_LEVEL) -> bytes:
    """Serialize and compress an artifact, prefixed with the format version."""
    return bytes([FORMAT_VERSION]) + zlib.compress(encode_payload(artifact), level)


# ============================================================================
# Decoding
# ============================================================================

class _Reader:
    """Sequential struct reader that reports truncation as DecodeError."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        if self.offset + size > len(self.data):
            raise DecodeError(f"truncated payload at offset {self.offset}")
        value = struct.unpack_from(fmt, self.data, self.offset)[0]
        self.offset += size
        return value

    def read(self, size: int) -> bytes:
        if self.offset + size > len(self.data):
            raise DecodeError(f"truncated payload at offset {self.offset}")
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def read_str(self) -> str:
        raw = self.read(self.unpack(STR_LEN_FORMAT))
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid UTF-8 in payload: {e}") from e

    @property
    def exhausted(self) -> bool:
        return self.offset == len(self.data)


def _read_profile(reader: _Reader) -> Profile:
    name = reader.read_str()
    tiers = tuple(reader.read_str() for _ in range(reader.unpack(TIER_COUNT_FORMAT)))
    trie_bytes = reader.read(reader.unpack(COUNT_FORMAT))

    table: List[CandidateList] = []
    for _ in range(reader.unpack(COUNT_FORMAT)):
        count = reader.unpack(CANDIDATE_COUNT_FORMAT)
        if count == 0:
            raise DecodeError(f"profile {name!r} contains an entry without candidates")
        table.append(tuple(
            Candidate(reader.read_str(), reader.unpack(RANK_FORMAT))
            for _ in range(count)
        ))

    try:
        dictionary = CompiledDictionary.from_parts(trie_bytes, table)
    except (RuntimeError, ValueError, MemoryError) as e:
        raise DecodeError(f"corrupt trie for profile {name!r}: {e}") from e

    return Profile(name=name, tiers=tiers, dictionary=dictionary)


def decode_artifact(blob: bytes) -> Artifact:
    """
    Decode an artifact produced by ``encode_artifact``.

    Raises:
        DecodeError: On an empty blob, a version mismatch, or a corrupt payload
    """
    if not blob:
        raise DecodeError("empty dictionary artifact")
    version = blob[0]
    if version != FORMAT_VERSION:
        raise DecodeError(
            f"unsupported dictionary format version {version} (expected {FORMAT_VERSION})"
        )

    try:
        payload = zlib.decompress(blob[1:])
    except zlib.error as e:
        raise DecodeError(f"failed to decompress dictionary: {e}") from e

    reader = _Reader(payload)
    profiles = tuple(_read_profile(reader) for _ in range(reader.unpack(COUNT_FORMAT)))
    words = tuple(reader.read_str() for _ in range(reader.unpack(COUNT_FORMAT)))

    if not reader.exhausted:
        raise DecodeError(f"{len(payload) - reader.offset} bytes of trailing data in payload")

    names = [p.name for p in profiles]
    if len(set(names)) != len(names):
        raise DecodeError("duplicate profile names in payload")

    return Artifact(profiles=profiles, words=words)


# ============================================================================
# Dictionary Loading
# ============================================================================

# Module-level singleton
_ARTIFACT: Optional[Artifact] = None
_REGISTRY: Optional[Registry] = None
_LOCK = threading.Lock()


def get_dictionary_path() -> Path:
    """Get the default dictionary path."""
    return settings.DICTIONARY_PATH


def is_dictionary_loaded() -> bool:
    """Check if dictionary is loaded."""
    return _ARTIFACT is not None


def load_dictionary(path: Optional[Path] = None) -> Artifact:
    """
    Load the compiled dictionary.

    Loading happens once per process; later calls return the cached
    artifact whatever ``path`` they pass. Call ``unload_dictionary`` first
    to switch files.

    Args:
        path: Path to the .dic file. Uses default if not specified.

    Returns:
        The decoded Artifact

    Raises:
        FileNotFoundError: If dictionary file doesn't exist
        DecodeError: If the file is corrupt or from another format version
    """
    global _ARTIFACT, _REGISTRY

    if _ARTIFACT is not None:
        return _ARTIFACT

    with _LOCK:
        if _ARTIFACT is not None:
            return _ARTIFACT

        if path is None:
            path = get_dictionary_path()
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(
                f"Dictionary not found at {path}. "
                "Run 'python -m ztarcc.build --source <opencc dictionary dir>' to build it."
            )

        t0 = time.perf_counter()
        artifact = decode_artifact(path.read_bytes())
        _REGISTRY = artifact.registry()
        _ARTIFACT = artifact
        logger.debug(
            f"Loaded {path} in {(time.perf_counter() - t0) * 1000:.1f}ms "
            f"({len(artifact.profiles)} profiles, {len(artifact.words)} segmenter words)"
        )

    return _ARTIFACT


def load_profiles(path: Optional[Path] = None) -> Registry:
    """Get the profile registry of the loaded dictionary, loading it if necessary."""
    load_dictionary(path)
    return _REGISTRY


def get_segmenter_words() -> Tuple[str, ...]:
    """Multi-character keys of the loaded dictionary."""
    return load_dictionary().words


def unload_dictionary():
    """Unload the dictionary and the segmenter built from its word list."""
    global _ARTIFACT, _REGISTRY
    from ztarcc.segmenter import reset_segmenter

    with _LOCK:
        _ARTIFACT = None
        _REGISTRY = None
    reset_segmenter()
