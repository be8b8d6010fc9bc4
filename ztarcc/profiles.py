"""
Conversion profiles and the profile registry.

A profile is one conversion direction: an ordered list of tiers merged
into a single CompiledDictionary. Converting between two regional scripts
goes through two profiles, ``from-<source>`` (into OpenCC standard
characters) then ``to-<target>``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, Tuple, Union

from ztarcc.errors import ProfileNotFound
from ztarcc.trie import CompiledDictionary


class Script(str, Enum):
    """A source or destination script variant."""
    ST = "st"  # OpenCC standard (traditional)
    CN = "cn"  # Simplified, China
    TW = "tw"  # Traditional, Taiwan
    HK = "hk"  # Traditional, Hong Kong

    @property
    def from_profile(self) -> str:
        """Name of the profile converting this script into standard characters."""
        return f"from-{self.value}"

    @property
    def to_profile(self) -> str:
        """Name of the profile converting standard characters into this script."""
        return f"to-{self.value}"


@dataclass(frozen=True, slots=True)
class Profile:
    """
    A named conversion direction.

    Attributes:
        name: Profile name (e.g. "from-cn")
        tiers: Tier references in priority order, lowest first
        dictionary: Merged, trie-indexed entries of all tiers
    """
    name: str
    tiers: Tuple[str, ...]
    dictionary: CompiledDictionary

    @property
    def is_passthrough(self) -> bool:
        """True for a profile with no tiers; it returns its input unchanged."""
        return not self.tiers

    def __repr__(self) -> str:
        return f"Profile({self.name!r}, tiers={list(self.tiers)!r}, keys={len(self.dictionary)})"


class Registry:
    """Read-only, case-sensitive lookup of profiles by name."""

    __slots__ = ("_profiles",)

    def __init__(self, profiles: Iterable[Profile]):
        table: Dict[str, Profile] = {}
        for profile in profiles:
            if profile.name in table:
                raise ValueError(f"duplicate profile name {profile.name!r}")
            table[profile.name] = profile
        self._profiles = table

    def resolve(self, name: Union[str, Profile]) -> Profile:
        """
        Get a profile by exact name.

        Raises:
            ProfileNotFound: If no profile has this name
        """
        if isinstance(name, Profile):
            return name
        try:
            return self._profiles[name]
        except KeyError:
            raise ProfileNotFound(name, self._profiles) from None

    def resolve_pair(self, source: Union[str, Script], target: Union[str, Script]) -> Tuple[Profile, Profile]:
        """
        Get the two profiles converting ``source`` script text into ``target``.

        Raises:
            ProfileNotFound: If either script is unknown
        """
        return (
            self.resolve(_as_script(source, self).from_profile),
            self.resolve(_as_script(target, self).to_profile),
        )

    def names(self) -> Tuple[str, ...]:
        return tuple(self._profiles)

    def __contains__(self, name: object) -> bool:
        return name in self._profiles

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)

    def __repr__(self) -> str:
        return f"Registry({list(self._profiles)!r})"


def _as_script(value: Union[str, Script], registry: Registry) -> Script:
    try:
        return Script(value)
    except ValueError:
        raise ProfileNotFound(str(value), registry.names()) from None
