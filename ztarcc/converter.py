"""
Conversion engine for ztarcc.

Text is segmented first; each segment is then scanned left to right with
longest-match lookups against a profile's dictionary. Characters no key
matches are copied unchanged, so conversion never fails once a profile
is resolved.
"""

import logging
import threading
from concurrent.futures import Executor
from typing import List, Optional, Sequence, Union

from ztarcc.profiles import Profile
from ztarcc.segmenter import Segmenter, SegmentSpan, get_segmenter
from ztarcc.trie import CandidateList

logger = logging.getLogger(__name__)

ProfileChain = Union[Profile, Sequence[Profile]]


# =============================================================================
# Disambiguation
# =============================================================================

def choose_candidate(candidates: CandidateList, matched_length: int, segment_length: int) -> str:
    """
    Pick one target among a match's candidates.

    When the match spans the whole segment, the best-ranked candidate with
    the same character count as the match wins; otherwise, or when no
    candidate preserves the length, the rank-0 candidate is used.

    Args:
        candidates: Candidates ordered by rank
        matched_length: Characters consumed by the match
        segment_length: Characters in the current segment
    """
    if len(candidates) > 1 and matched_length == segment_length:
        for target, _rank in candidates:
            if len(target) == matched_length:
                return target
    return candidates[0].target


# =============================================================================
# Segment Conversion
# =============================================================================

def convert_segment(word: str, profile: Profile) -> str:
    """
    Convert one segment with one profile.

    Args:
        word: Segment text
        profile: Profile whose dictionary is applied

    Returns:
        Converted segment
    """
    dictionary = profile.dictionary
    if not len(dictionary):
        return word

    parts: List[str] = []
    offset = 0
    length = len(word)
    while offset < length:
        match = dictionary.longest_match(word, offset)
        if match is None:
            parts.append(word[offset])
            offset += 1
        else:
            parts.append(choose_candidate(match.candidates, match.length, length))
            offset += match.length
    return ''.join(parts)


def _as_chain(profiles: ProfileChain) -> Sequence[Profile]:
    if isinstance(profiles, Profile):
        return (profiles,)
    return tuple(profiles)


def convert_spans(text: str, spans: Sequence[SegmentSpan], profiles: ProfileChain) -> str:
    """
    Convert text that has already been segmented.

    Each span is passed through every profile in order; spans are
    concatenated in their original order.
    """
    chain = _as_chain(profiles)
    parts: List[str] = []
    for start, end in spans:
        word = text[start:end]
        for profile in chain:
            word = convert_segment(word, profile)
        parts.append(word)
    return ''.join(parts)


def convert(text: str, profiles: ProfileChain, segmenter: Optional[Segmenter] = None) -> str:
    """
    Convert text with one profile, or a chain of profiles applied in order.

    Args:
        text: Text to convert
        profiles: A Profile or a sequence of Profiles
        segmenter: Word segmenter (defaults to the shared jieba segmenter)

    Returns:
        Converted text
    """
    if not text:
        return text
    if segmenter is None:
        segmenter = get_segmenter()
    return convert_spans(text, list(segmenter.segment(text)), profiles)


# =============================================================================
# Parallel Line Conversion
# =============================================================================

_SKIPPED = object()


def convert_lines(
    lines: Sequence[str],
    profiles: ProfileChain,
    executor: Executor,
    segmenter: Optional[Segmenter] = None,
    cancel: Optional[threading.Event] = None,
) -> List[Optional[str]]:
    """
    Convert independent lines on an executor, keeping input order.

    A line whose conversion raises is logged and returned unconverted.
    Once ``cancel`` is set, lines that have not started are skipped and
    their slot is None; lines already converted are kept.

    Args:
        lines: Lines to convert
        profiles: A Profile or a sequence of Profiles
        executor: Executor running the per-line tasks
        segmenter: Word segmenter (defaults to the shared jieba segmenter)
        cancel: Event that stops further lines from being converted

    Returns:
        One slot per input line, in input order
    """
    chain = _as_chain(profiles)
    if segmenter is None and lines:
        segmenter = get_segmenter()

    def task(index: int, line: str):
        if cancel is not None and cancel.is_set():
            return _SKIPPED
        try:
            return convert(line, chain, segmenter)
        except Exception as e:
            logger.warning(f"Line {index + 1} left unconverted: {e!r}")
            return line

    futures = [executor.submit(task, i, line) for i, line in enumerate(lines)]

    results: List[Optional[str]] = [None] * len(lines)
    for i, future in enumerate(futures):
        value = future.result()
        if value is not _SKIPPED:
            results[i] = value
    return results


def convert_document(
    text: str,
    profiles: ProfileChain,
    executor: Executor,
    segmenter: Optional[Segmenter] = None,
    cancel: Optional[threading.Event] = None,
) -> str:
    """
    Convert a multi-line document line by line in parallel.

    Line endings are preserved. Lines skipped by cancellation are copied
    unconverted.
    """
    lines = text.splitlines(keepends=True)
    converted = convert_lines(lines, profiles, executor, segmenter=segmenter, cancel=cancel)
    return ''.join(
        line if result is None else result
        for line, result in zip(lines, converted)
    )
