"""
ztarcc: Convert between Chinese script variants

Character and phrase substitution with OpenCC dictionaries, guided by
jieba word segmentation to pick between one-to-many mappings. The
dictionaries are compiled ahead of time into one compact artifact that
is loaded once per process.

Basic Usage:
    import ztarcc

    # Simplified (China) to Traditional (Taiwan)
    print(ztarcc.convert_between("他们是勇敢的士兵", "cn", "tw"))

    # A single profile by name
    print(ztarcc.convert("龙", "from-cn"))
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import List, Optional, Sequence, Tuple, Union

from ztarcc import settings
from ztarcc.errors import BuildError, DecodeError, ParseError, ProfileNotFound, ZtarccError
from ztarcc.profiles import Profile, Registry, Script
from ztarcc.segmenter import Segmenter, SegmentSpan

__version__ = "0.1.0"

ProfileRef = Union[str, Profile]


# =============================================================================
# Main API
# =============================================================================

def load_profiles() -> Registry:
    """
    Load the compiled dictionary and return its profile registry.

    Raises:
        FileNotFoundError: If the dictionary has not been built
        DecodeError: If the dictionary file is unusable
    """
    from ztarcc.dictionary import load_profiles as _load_profiles
    return _load_profiles()


def _resolve_chain(profiles: Union[ProfileRef, Sequence[ProfileRef]]) -> Tuple[Profile, ...]:
    if isinstance(profiles, (str, Profile)):
        profiles = (profiles,)
    registry = None
    chain = []
    for ref in profiles:
        if isinstance(ref, Profile):
            chain.append(ref)
        else:
            if registry is None:
                registry = load_profiles()
            chain.append(registry.resolve(ref))
    return tuple(chain)


def convert(text: str, profile: ProfileRef, segmenter: Optional[Segmenter] = None) -> str:
    """
    Convert text with one profile.

    Args:
        text: Text to convert
        profile: Profile or profile name (e.g. "from-cn")
        segmenter: Word segmenter (defaults to jieba)

    Returns:
        Converted text

    Raises:
        ProfileNotFound: If the profile name is unknown

    Example:
        >>> import ztarcc
        >>> ztarcc.convert("龍", "to-cn")
        '龙'
    """
    from ztarcc.converter import convert as _convert
    return _convert(text, _resolve_chain(profile), segmenter)


def convert_between(
    text: str,
    source: Union[str, Script],
    target: Union[str, Script],
    segmenter: Optional[Segmenter] = None,
) -> str:
    """
    Convert text from one script variant to another.

    Goes through OpenCC standard characters: ``from-<source>`` then
    ``to-<target>``.

    Example:
        >>> ztarcc.convert_between("我能吞下玻璃而不伤身体。", "cn", "tw")
        '我能吞下玻璃而不傷身體。'
    """
    from ztarcc.converter import convert as _convert
    return _convert(text, load_profiles().resolve_pair(source, target), segmenter)


def convert_lines(
    lines: Sequence[str],
    profiles: Union[ProfileRef, Sequence[ProfileRef]],
    segmenter: Optional[Segmenter] = None,
    cancel: Optional[threading.Event] = None,
) -> List[Optional[str]]:
    """
    Convert lines in parallel on the shared thread pool.

    Output order matches input order. Slots of lines skipped after
    ``cancel`` was set are None.
    """
    from ztarcc.converter import convert_lines as _convert_lines
    return _convert_lines(lines, _resolve_chain(profiles), _get_executor(),
                          segmenter=segmenter, cancel=cancel)


def convert_document(
    text: str,
    profiles: Union[ProfileRef, Sequence[ProfileRef]],
    segmenter: Optional[Segmenter] = None,
    cancel: Optional[threading.Event] = None,
) -> str:
    """Convert a multi-line document line by line on the shared thread pool."""
    from ztarcc.converter import convert_document as _convert_document
    return _convert_document(text, _resolve_chain(profiles), _get_executor(),
                             segmenter=segmenter, cancel=cancel)


def warm_up(verbose: bool = False) -> Tuple[float, dict]:
    """
    Pre-load the dictionary and the segmenter.

    Args:
        verbose: If True, print timing information

    Returns:
        Tuple of (total_time_seconds, timing_details_dict)
    """
    from ztarcc.dictionary import load_dictionary
    from ztarcc.segmenter import get_segmenter

    timings = {}
    total_start = time.perf_counter()

    if verbose:
        print("Loading ztarcc dictionary...")

    t0 = time.perf_counter()
    artifact = load_dictionary()
    timings['dictionary'] = (time.perf_counter() - t0) * 1000

    if verbose:
        print(f"  Dictionary:     {timings['dictionary']:>7.1f}ms ({len(artifact.profiles)} profiles)")

    t0 = time.perf_counter()
    get_segmenter()
    timings['segmenter'] = (time.perf_counter() - t0) * 1000

    if verbose:
        print(f"  Segmenter:      {timings['segmenter']:>7.1f}ms ({len(artifact.words):,} extra words)")

    total_time = time.perf_counter() - total_start
    timings['total'] = total_time * 1000

    if verbose:
        print(f"Total warm-up:    {timings['total']:>7.1f}ms")

    return total_time, timings


def get_version() -> str:
    """Get the library version."""
    return __version__


# =============================================================================
# Thread Pool
# =============================================================================

_executor = None
_executor_lock = threading.Lock()


def _get_executor() -> ThreadPoolExecutor:
    """Get or create the thread pool executor."""
    global _executor

    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=settings.WORKERS, thread_name_prefix="ztarcc")

    return _executor


def shutdown():
    """
    Shutdown the thread pool executor.

    Call this when your application is shutting down to cleanly
    release resources.
    """
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=True)
            _executor = None


# =============================================================================
# Session Context (for batch processing)
# =============================================================================

@contextmanager
def session_context():
    """
    Context manager for batch conversion.

    Pre-loads the dictionary and segmenter, and shuts the thread pool
    down on exit.

    Example:
        >>> with ztarcc.session_context():
        ...     for text in texts:
        ...         out = ztarcc.convert_between(text, "cn", "hk")
    """
    warm_up()
    try:
        yield
    finally:
        shutdown()


# =============================================================================
# Module-level exports
# =============================================================================

__all__ = [
    # Data classes
    "Profile",
    "Registry",
    "Script",
    "SegmentSpan",
    # Sync API
    "load_profiles",
    "convert",
    "convert_between",
    "warm_up",
    "get_version",
    # Parallel API
    "convert_lines",
    "convert_document",
    "shutdown",
    # Batch processing
    "session_context",
    # Exceptions
    "ZtarccError",
    "ParseError",
    "BuildError",
    "DecodeError",
    "ProfileNotFound",
    # Version
    "__version__",
]
