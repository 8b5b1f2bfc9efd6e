"""Semantic version parsing and ordering."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

_DIGITS = r"(?:0|[1-9][0-9]*)"
_ALPHANUM = r"[-0-9A-Za-z]+"
# Must contain at least one non-digit, otherwise it is a numeric identifier.
_STRICT_ALPHANUM = r"[-0-9A-Za-z]*[-A-Za-z]+[-0-9A-Za-z]*"
_PRE_RELEASE_ID = rf"(?:{_DIGITS}|{_STRICT_ALPHANUM})"
_PRE_RELEASE = rf"(?:{_PRE_RELEASE_ID}(?:\.{_PRE_RELEASE_ID})*)"
_BUILD = rf"(?:{_ALPHANUM}(?:\.{_ALPHANUM})*)"

SEMVER_PATTERN = re.compile(
    rf"^(?P<major>{_DIGITS})\.(?P<minor>{_DIGITS})\.(?P<patch>{_DIGITS})"
    rf"(?:-(?P<prerelease>{_PRE_RELEASE}))?(?:\+(?P<build>{_BUILD}))?$"
)


@total_ordering
@dataclass(frozen=True, eq=False)
class PreRelease:
    """Dot-separated pre-release identifiers, e.g. ``rc.1``."""

    identifiers: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> PreRelease:
        return cls(tuple(text.split(".")))

    def _key(self) -> tuple[tuple[int, int, str], ...]:
        # Numeric identifiers sort before alphanumeric ones.
        return tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part) for part in self.identifiers
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PreRelease):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: PreRelease) -> bool:
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return ".".join(self.identifiers)


@total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """A version following Semantic Versioning 2.0.

    Build metadata is kept for display but ignored by comparisons and hashing.
    """

    major: int
    minor: int
    patch: int
    pre_release: PreRelease | None = None
    build: str | None = None
    text: str = field(default="", compare=False)

    @classmethod
    def parse(cls, version: str) -> SemanticVersion:
        """Parse a version string.

        Raises:
            ValueError: If ``version`` is empty or not a valid semantic version.
        """

        if not version:
            raise ValueError("Version string must not be empty.")
        match = SEMVER_PATTERN.match(version)
        if match is None:
            raise ValueError(f'Pattern "{version}" is not a valid SemanticVersion.')
        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            pre_release=PreRelease.parse(prerelease) if prerelease is not None else None,
            build=match.group("build"),
            text=version,
        )

    def _release(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._release() == other._release() and self.pre_release == other.pre_release

    def __lt__(self, other: SemanticVersion) -> bool:
        if self._release() != other._release():
            return self._release() < other._release()
        # A pre-release has lower precedence than the release itself.
        if self.pre_release is None:
            return False
        if other.pre_release is None:
            return True
        return self.pre_release < other.pre_release

    def __hash__(self) -> int:
        return hash((self._release(), self.pre_release))

    def __str__(self) -> str:
        if self.text:
            return self.text
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release is not None:
            version += f"-{self.pre_release}"
        if self.build:
            version += f"+{self.build}"
        return version
