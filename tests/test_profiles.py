"""
Tests for profiles.py - the profile registry.
"""

import pytest

from ztarcc.errors import ProfileNotFound
from ztarcc.profiles import Profile, Registry, Script
from ztarcc.trie import CompiledDictionary


class TestRegistry:

    def test_resolve(self, registry):
        profile = registry.resolve("to-cn")
        assert isinstance(profile, Profile)
        assert profile.name == "to-cn"

    def test_resolve_profile_instance(self, registry):
        profile = registry.resolve("to-cn")
        assert registry.resolve(profile) is profile

    def test_unknown_name(self, registry):
        with pytest.raises(ProfileNotFound) as exc_info:
            registry.resolve("to-xx")
        assert exc_info.value.name == "to-xx"
        assert "to-cn" in exc_info.value.available
        assert "to-cn" in str(exc_info.value)

    def test_case_sensitive(self, registry):
        with pytest.raises(ProfileNotFound):
            registry.resolve("TO-CN")

    def test_profile_not_found_is_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.resolve("missing")

    def test_names_and_iteration(self, registry):
        assert registry.names()[0] == "from-st"
        assert [p.name for p in registry] == list(registry.names())
        assert len(registry) == 7
        assert "identity" in registry
        assert "nope" not in registry

    def test_duplicate_names_rejected(self):
        p = Profile("p", (), CompiledDictionary.empty())
        with pytest.raises(ValueError):
            Registry([p, p])


class TestScripts:

    def test_profile_names(self):
        assert Script.CN.from_profile == "from-cn"
        assert Script.HK.to_profile == "to-hk"

    def test_resolve_pair(self, registry):
        source, target = registry.resolve_pair("cn", Script.TW)
        assert (source.name, target.name) == ("from-cn", "to-tw")

    def test_resolve_pair_unknown_script(self, registry):
        with pytest.raises(ProfileNotFound):
            registry.resolve_pair("jp", "tw")

    def test_resolve_pair_missing_profile(self, registry):
        # the sample dictionary has no Hong Kong profiles
        with pytest.raises(ProfileNotFound) as exc_info:
            registry.resolve_pair("hk", "cn")
        assert exc_info.value.name == "from-hk"
