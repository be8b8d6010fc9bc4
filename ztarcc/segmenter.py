"""
Word segmentation for ztarcc.

The converter only needs word boundaries: an ordered, non-overlapping
sequence of spans that covers the whole input. Statistical segmentation
is delegated to jieba; the dictionary's multi-character keys are added to
jieba's vocabulary so that dictionary phrases stay in one span.
"""

import logging
import threading
from typing import Iterable, Iterator, NamedTuple, Optional, Protocol

import jieba

logger = logging.getLogger(__name__)


class SegmentSpan(NamedTuple):
    """Half-open character range ``[start, end)`` of one segment."""
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


class Segmenter(Protocol):
    """Anything that can split text into covering spans."""

    def segment(self, text: str) -> Iterable[SegmentSpan]:
        ...


class JiebaSegmenter:
    """
    Segmenter backed by a private jieba.Tokenizer.

    The tokenizer is fully initialized (dictionary loaded, extra words
    added) in the constructor and only read afterwards, so one instance
    can be shared between threads.
    """

    def __init__(self, words: Iterable[str] = (), hmm: bool = True):
        jieba.setLogLevel(logging.WARNING)
        self.hmm = hmm
        self._tokenizer = jieba.Tokenizer()
        self._tokenizer.initialize()

        added = 0
        for word in words:
            self._tokenizer.add_word(word)
            added += 1
        if added:
            logger.debug(f"Added {added} dictionary words to jieba")

    def segment(self, text: str) -> Iterator[SegmentSpan]:
        if not text:
            return
        for _word, start, end in self._tokenizer.tokenize(text, mode="default", HMM=self.hmm):
            yield SegmentSpan(start, end)


class CharacterSegmenter:
    """One span per character."""

    def segment(self, text: str) -> Iterator[SegmentSpan]:
        for i in range(len(text)):
            yield SegmentSpan(i, i + 1)


class WholeTextSegmenter:
    """A single span covering the whole text."""

    def segment(self, text: str) -> Iterator[SegmentSpan]:
        if text:
            yield SegmentSpan(0, len(text))


# ============================================================================
# Default Segmenter
# ============================================================================

_SEGMENTER: Optional[JiebaSegmenter] = None
_LOCK = threading.Lock()


def get_segmenter() -> JiebaSegmenter:
    """
    Get the process-wide jieba segmenter, creating it on first use.

    The segmenter vocabulary includes the loaded dictionary's words.
    """
    global _SEGMENTER

    if _SEGMENTER is not None:
        return _SEGMENTER

    with _LOCK:
        if _SEGMENTER is None:
            from ztarcc.dictionary import get_segmenter_words
            _SEGMENTER = JiebaSegmenter(get_segmenter_words())

    return _SEGMENTER


def reset_segmenter():
    """Drop the process-wide segmenter (used after switching dictionaries)."""
    global _SEGMENTER
    with _LOCK:
        _SEGMENTER = None
