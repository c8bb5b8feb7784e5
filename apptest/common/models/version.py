import re
from typing import NamedTuple, Optional

_SEMVER = re.compile(r"v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$")


class VersionInfo(NamedTuple):
    major: int
    minor: int
    micro: int
    prerelease: str


class Version:
    """Semantic version, ordered the way Helm orders chart versions."""

    _version: str

    info: VersionInfo

    def __init__(self, version: str, version_info: VersionInfo) -> None:
        self._version = version
        self.info = version_info

    @classmethod
    def parse(cls, version: str) -> Optional["Version"]:
        """Parse a version string, returning None if it is not semver."""
        _match = _SEMVER.match(str(version).strip())
        if _match is None:
            return None
        major, minor, micro, prerelease = _match.groups()
        return Version(
            version, VersionInfo(int(major), int(minor), int(micro), prerelease or "")
        )

    def sort_key(self):
        # A release sorts after any of its pre-releases.
        return (
            self.info.major,
            self.info.minor,
            self.info.micro,
            self.info.prerelease == "",
            self.info.prerelease,
        )

    def __lt__(self, other: "Version") -> bool:
        return self.sort_key() < other.sort_key()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Version) and self.sort_key() == other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __str__(self) -> str:
        return self._version
