#!/usr/bin/env python3
"""
Dictionary Builder for ztarcc.

This module compiles OpenCC-format dictionary files into the single
binary artifact the converter loads at runtime. It parses every tier a
profile manifest references, merges the tiers of each profile, indexes
the result in a marisa_trie.Trie, and writes one compressed file.

Usage:
    python -m ztarcc.build --source opencc/data/dictionary [--manifest PATH] [--output PATH]

Manifest format (JSON):
    {
        "version": 1,
        "profiles": {
            "from-cn": ["STCharacters", "STPhrases"],
            "from-tw": ["!TWVariants", "TWVariantsRevPhrases"],
            "to-st": []
        }
    }

Tiers are listed lowest priority first. ``!Name`` uses tier ``Name``
reversed. A profile with no tiers passes text through unchanged.

The default manifest expects the Taiwan phrase tables split into
TWPhrasesIT.txt, TWPhrasesName.txt and TWPhrasesOther.txt. For OpenCC
copies that ship them merged into one TWPhrases.txt (for example the
opencc-python-reimplemented package), pass
``--manifest ztarcc/data/manifest-twphrases.json``.
"""

import argparse
import json
import logging
import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ztarcc import settings
from ztarcc.dictionary import Artifact, encode_artifact
from ztarcc.entries import REVERSED_PREFIX, Tier, merge_tiers, read_tier
from ztarcc.errors import BuildError, ParseError
from ztarcc.profiles import Profile
from ztarcc.trie import CompiledDictionary

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1
TIER_SUFFIX = ".txt"


# ============================================================================
# Manifest
# ============================================================================

def load_manifest(path: Path) -> Dict[str, Tuple[str, ...]]:
    """
    Load a profile manifest.

    Returns:
        Dict mapping profile name -> tier references in priority order

    Raises:
        BuildError: If the manifest is not valid
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise BuildError(f"invalid manifest {path}: {e}") from e
    return parse_manifest(data, origin=str(path))


def parse_manifest(data: object, origin: str = "<manifest>") -> Dict[str, Tuple[str, ...]]:
    """Validate a decoded manifest object."""
    if not isinstance(data, dict):
        raise BuildError(f"{origin}: manifest must be a JSON object")

    version = data.get("version", MANIFEST_VERSION)
    if version != MANIFEST_VERSION:
        raise BuildError(f"{origin}: unsupported manifest version {version!r}")

    profiles = data.get("profiles")
    if not isinstance(profiles, dict) or not profiles:
        raise BuildError(f"{origin}: 'profiles' must be a non-empty object")

    result: Dict[str, Tuple[str, ...]] = {}
    for name, tiers in profiles.items():
        if not name:
            raise BuildError(f"{origin}: empty profile name")
        if not isinstance(tiers, list) or not all(isinstance(t, str) and t.lstrip(REVERSED_PREFIX) for t in tiers):
            raise BuildError(f"{origin}: profile {name!r} must list tier names")
        result[name] = tuple(tiers)
    return result


# ============================================================================
# Tier Loading
# ============================================================================

def base_tier_name(reference: str) -> str:
    """Strip the reversed marker from a tier reference."""
    return reference[len(REVERSED_PREFIX):] if reference.startswith(REVERSED_PREFIX) else reference


def load_tiers(source_dir: Path, manifest: Mapping[str, Sequence[str]]) -> Dict[str, Tier]:
    """
    Read every tier the manifest references.

    Each file is parsed once; reversed references are derived from the
    parsed tier.

    Returns:
        Dict mapping tier reference -> Tier

    Raises:
        ParseError: On a malformed dictionary line
        BuildError: If a referenced file is missing
    """
    references: List[str] = []
    for tiers in manifest.values():
        for ref in tiers:
            if ref not in references:
                references.append(ref)

    loaded: Dict[str, Tier] = {}
    for name in dict.fromkeys(base_tier_name(ref) for ref in references):
        path = source_dir / f"{name}{TIER_SUFFIX}"
        if not path.exists():
            raise BuildError(f"dictionary file not found: {path}")
        loaded[name] = read_tier(path, name)

    for ref in references:
        if ref.startswith(REVERSED_PREFIX):
            loaded[ref] = loaded[base_tier_name(ref)].reversed()

    for ref, tier in loaded.items():
        identities = tier.identity_count()
        if identities:
            logger.warning(f"Tier {ref} maps {identities} entries onto themselves")

    return loaded


# ============================================================================
# Compilation
# ============================================================================

def compile_profile(name: str, tier_refs: Sequence[str], tiers: Mapping[str, Tier]) -> Profile:
    """
    Merge a profile's tiers and index them.

    Raises:
        BuildError: If the profile lists tiers but ends up with no entries
    """
    merged = merge_tiers(tiers[ref] for ref in tier_refs)
    if tier_refs and not merged:
        raise BuildError(f"profile {name!r} has an empty dictionary (tiers: {', '.join(tier_refs)})")

    dictionary = CompiledDictionary.build(merged) if merged else CompiledDictionary.empty()
    logger.info(f"  Profile {name}: {len(dictionary)} keys, longest {dictionary.max_key_length} characters")
    return Profile(name=name, tiers=tuple(tier_refs), dictionary=dictionary)


def collect_segmenter_words(profiles: Sequence[Profile],
                            min_length: int = settings.SEGMENTER_WORD_MIN_LENGTH) -> Tuple[str, ...]:
    """Multi-character keys of all profiles, sorted for a stable artifact."""
    words: Set[str] = set()
    for profile in profiles:
        words.update(key for key in profile.dictionary.iterkeys() if len(key) >= min_length)
    return tuple(sorted(words))


def compile_artifact(source_dir: Path, manifest: Mapping[str, Sequence[str]]) -> Artifact:
    """
    Compile every profile of a manifest.

    Args:
        source_dir: Directory holding the ``<tier>.txt`` files
        manifest: Profile name -> tier references

    Returns:
        The in-memory Artifact
    """
    logger.info(f"Parsing dictionaries from {source_dir}...")
    tiers = load_tiers(source_dir, manifest)

    logger.info("Compiling profiles...")
    profiles = tuple(compile_profile(name, refs, tiers) for name, refs in manifest.items())

    words = collect_segmenter_words(profiles)
    logger.info(f"  Segmenter words: {len(words)}")

    return Artifact(profiles=profiles, words=words)


def write_artifact(artifact: Artifact, output_path: Path, level: int = settings.COMPRESSION_LEVEL) -> int:
    """
    Encode and save an artifact.

    The file is written to a temporary name and moved into place, so a
    failed build never leaves a partial artifact.

    Returns:
        Size of the written file in bytes
    """
    blob = encode_artifact(artifact, level)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=output_path.name, suffix=".tmp", dir=output_path.parent)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(blob)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(f"Saved dictionary to {output_path} ({len(blob) / 1024:.1f} KB)")
    return len(blob)


def build(source_dir: Path, manifest_path: Path, output_path: Path,
          level: int = settings.COMPRESSION_LEVEL) -> Artifact:
    """Compile dictionaries and write the artifact. Nothing is written on failure."""
    manifest = load_manifest(manifest_path)
    artifact = compile_artifact(source_dir, manifest)
    write_artifact(artifact, output_path, level)
    return artifact


# ============================================================================
# Main
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m ztarcc.build",
        description="Build the ztarcc dictionary artifact from OpenCC dictionary files"
    )
    parser.add_argument(
        '--source', '-s',
        type=Path,
        required=True,
        help="Directory containing the OpenCC <tier>.txt dictionaries"
    )
    parser.add_argument(
        '--manifest', '-m',
        type=Path,
        default=settings.MANIFEST_PATH,
        help=f"Profile manifest (default: {settings.MANIFEST_PATH})"
    )
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=settings.DICTIONARY_PATH,
        help=f"Output dictionary path (default: {settings.DICTIONARY_PATH})"
    )
    parser.add_argument(
        '--level', '-l',
        type=int,
        choices=range(0, 10),
        default=settings.COMPRESSION_LEVEL,
        metavar="0-9",
        help=f"zlib compression level (default: {settings.COMPRESSION_LEVEL})"
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help="Log debug output"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=settings.LOG_FORMAT,
    )

    if not args.source.is_dir():
        logger.error(f"Dictionary directory not found: {args.source}")
        return 1
    if not args.manifest.exists():
        logger.error(f"Manifest not found: {args.manifest}")
        return 1

    start_time = time.time()

    try:
        build(args.source, args.manifest, args.output, args.level)
    except (ParseError, BuildError) as e:
        logger.error(f"Build failed: {e}")
        return 1

    elapsed = time.time() - start_time
    logger.info(f"Build completed in {elapsed:.1f} seconds")
    return 0


if __name__ == '__main__':
    sys.exit(main())
