"""Pytest configuration and fixtures."""

import shutil
from pathlib import Path

import pytest

from ztarcc import build
from ztarcc.dictionary import decode_artifact, load_dictionary, unload_dictionary
from ztarcc.segmenter import SegmentSpan, reset_segmenter

DATA_DIR = Path(__file__).parent / "data"


class SpanSegmenter:
    """Segmenter returning fixed spans, for tests that pin segmentation."""

    def __init__(self, *lengths):
        self.lengths = lengths

    def segment(self, text):
        start = 0
        for length in self.lengths:
            yield SegmentSpan(start, start + length)
            start += length
        if start < len(text):
            yield SegmentSpan(start, len(text))


@pytest.fixture
def tier_dir(tmp_path):
    """Copy of the sample dictionaries that tests may modify."""
    target = tmp_path / "dictionary"
    shutil.copytree(DATA_DIR, target)
    return target


@pytest.fixture
def manifest_path(tier_dir):
    return tier_dir / "manifest.json"


@pytest.fixture
def artifact_path(tier_dir, manifest_path, tmp_path):
    """Sample dictionaries compiled to a .dic file."""
    output = tmp_path / "out" / "test.dic"
    build.build(tier_dir, manifest_path, output)
    return output


@pytest.fixture
def artifact(artifact_path):
    return decode_artifact(artifact_path.read_bytes())


@pytest.fixture
def registry(artifact):
    return artifact.registry()


@pytest.fixture
def loaded_dictionary(artifact_path):
    """Install the sample artifact as the process-wide dictionary."""
    unload_dictionary()
    reset_segmenter()
    artifact = load_dictionary(artifact_path)
    yield artifact
    unload_dictionary()
    reset_segmenter()
