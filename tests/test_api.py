"""
Tests for the top-level ztarcc API.
"""

import threading

import pytest

import ztarcc
from ztarcc.segmenter import CharacterSegmenter


@pytest.fixture(autouse=True)
def stop_executor():
    yield
    ztarcc.shutdown()


class TestConvert:

    def test_by_name(self, loaded_dictionary):
        assert ztarcc.convert("龍", "to-cn") == "龙"

    def test_by_profile(self, loaded_dictionary):
        profile = ztarcc.load_profiles().resolve("to-cn")
        assert ztarcc.convert("隻", profile) == "只"

    def test_unknown_profile(self, loaded_dictionary):
        with pytest.raises(ztarcc.ProfileNotFound):
            ztarcc.convert("龍", "to-klingon")

    def test_phrase_with_default_segmenter(self, loaded_dictionary):
        assert ztarcc.convert("头发", "from-cn") == "頭髮"

    def test_convert_between(self, loaded_dictionary):
        assert ztarcc.convert_between("龙们", "cn", "tw") == "龍們"
        assert ztarcc.convert_between("偽", ztarcc.Script.TW, ztarcc.Script.ST) == "僞"

    def test_missing_dictionary(self, tmp_path):
        from ztarcc.dictionary import load_dictionary, unload_dictionary
        unload_dictionary()
        with pytest.raises(FileNotFoundError):
            load_dictionary(tmp_path / "nothing.dic")


class TestParallelApi:

    def test_convert_lines(self, loaded_dictionary):
        lines = [f"{i}龍" for i in range(50)]
        assert ztarcc.convert_lines(lines, "to-cn", segmenter=CharacterSegmenter()) == [
            f"{i}龙" for i in range(50)
        ]

    def test_convert_lines_chain(self, loaded_dictionary):
        assert ztarcc.convert_lines(["龙"], ["from-cn", "to-cn"]) == ["龙"]

    def test_convert_document(self, loaded_dictionary):
        assert ztarcc.convert_document("龍\n體\n", "to-cn") == "龙\n体\n"

    def test_convert_document_cancelled(self, loaded_dictionary):
        cancel = threading.Event()
        cancel.set()
        assert ztarcc.convert_document("龍\n", "to-cn", cancel=cancel) == "龍\n"

    def test_unknown_profile_raises_before_dispatch(self, loaded_dictionary):
        with pytest.raises(ztarcc.ProfileNotFound):
            ztarcc.convert_lines(["龍"], "nope")


class TestLifecycle:

    def test_warm_up(self, loaded_dictionary):
        total, timings = ztarcc.warm_up()
        assert total >= 0
        assert {"dictionary", "segmenter", "total"} <= set(timings)

    def test_warm_up_verbose(self, loaded_dictionary, capsys):
        ztarcc.warm_up(verbose=True)
        assert "Total warm-up" in capsys.readouterr().out

    def test_session_context(self, loaded_dictionary):
        with ztarcc.session_context():
            assert ztarcc.convert("龍", "to-cn") == "龙"
        assert ztarcc._executor is None

    def test_version(self):
        assert ztarcc.get_version() == ztarcc.__version__ == "0.1.0"
