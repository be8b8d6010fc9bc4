"""
Tests for dictionary.py - artifact encoding, decoding and process-wide loading.
"""

import threading
import zlib

import pytest

from ztarcc import dictionary
from ztarcc.dictionary import (
    FORMAT_VERSION,
    Artifact,
    decode_artifact,
    encode_artifact,
    encode_payload,
)
from ztarcc.errors import DecodeError


class TestRoundTrip:

    def test_profiles_survive(self, artifact):
        decoded = decode_artifact(encode_artifact(artifact))
        assert [p.name for p in decoded.profiles] == [p.name for p in artifact.profiles]
        assert [p.tiers for p in decoded.profiles] == [p.tiers for p in artifact.profiles]
        assert decoded.words == artifact.words

    def test_candidates_survive(self, artifact):
        decoded = decode_artifact(encode_artifact(artifact)).registry()
        candidates = decoded.resolve("to-cn").dictionary.lookup("隻")
        assert [(c.target, c.rank) for c in candidates] == [("只", 0), ("隻", 1)]

    def test_version_byte(self, artifact):
        assert encode_artifact(artifact)[0] == FORMAT_VERSION

    def test_empty_artifact(self):
        decoded = decode_artifact(encode_artifact(Artifact(profiles=(), words=())))
        assert decoded.profiles == ()
        assert len(decoded.registry()) == 0


class TestDecodeErrors:

    def test_empty_blob(self):
        with pytest.raises(DecodeError, match="empty"):
            decode_artifact(b"")

    def test_version_mismatch(self, artifact):
        blob = encode_artifact(artifact)
        with pytest.raises(DecodeError, match="version"):
            decode_artifact(bytes([FORMAT_VERSION + 1]) + blob[1:])

    def test_not_compressed(self):
        with pytest.raises(DecodeError, match="decompress"):
            decode_artifact(bytes([FORMAT_VERSION]) + b"definitely not zlib")

    def test_truncated_payload(self, artifact):
        payload = encode_payload(artifact)
        blob = bytes([FORMAT_VERSION]) + zlib.compress(payload[:-3])
        with pytest.raises(DecodeError, match="truncated"):
            decode_artifact(blob)

    def test_trailing_data(self, artifact):
        payload = encode_payload(artifact)
        blob = bytes([FORMAT_VERSION]) + zlib.compress(payload + b"\x00")
        with pytest.raises(DecodeError, match="trailing"):
            decode_artifact(blob)

    def test_truncated_compressed_stream(self, artifact):
        blob = encode_artifact(artifact)
        with pytest.raises(DecodeError):
            decode_artifact(blob[: len(blob) // 2])


class TestLoadDictionary:

    @pytest.fixture(autouse=True)
    def clean_state(self):
        dictionary.unload_dictionary()
        yield
        dictionary.unload_dictionary()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="ztarcc.build"):
            dictionary.load_dictionary(tmp_path / "missing.dic")
        assert not dictionary.is_dictionary_loaded()

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "bad.dic"
        path.write_bytes(b"\x07garbage")
        with pytest.raises(DecodeError):
            dictionary.load_dictionary(path)
        assert not dictionary.is_dictionary_loaded()

    def test_loads_once(self, artifact_path, tmp_path):
        first = dictionary.load_dictionary(artifact_path)
        assert dictionary.is_dictionary_loaded()
        assert dictionary.load_dictionary(tmp_path / "ignored.dic") is first

    def test_load_profiles(self, artifact_path):
        registry = dictionary.load_profiles(artifact_path)
        assert "from-cn" in registry
        assert dictionary.load_profiles() is registry

    def test_segmenter_words(self, artifact_path):
        dictionary.load_dictionary(artifact_path)
        assert dictionary.get_segmenter_words() == ("一只", "头发")

    def test_concurrent_first_access(self, artifact_path):
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(dictionary.load_dictionary(artifact_path))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_unload(self, artifact_path):
        dictionary.load_dictionary(artifact_path)
        dictionary.unload_dictionary()
        assert not dictionary.is_dictionary_loaded()

    def test_unload_drops_segmenter(self, artifact_path):
        from ztarcc import segmenter

        dictionary.load_dictionary(artifact_path)
        first = segmenter.get_segmenter()
        dictionary.unload_dictionary()
        assert segmenter._SEGMENTER is None

        dictionary.load_dictionary(artifact_path)
        assert segmenter.get_segmenter() is not first
