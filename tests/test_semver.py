from __future__ import annotations

import pytest

from cloudsdk_runner.semver import SemanticVersion


def test_parse_components() -> None:
    version = SemanticVersion.parse("1.2.3-rc.1+build.5")

    assert (version.major, version.minor, version.patch) == (1, 2, 3)
    assert str(version.pre_release) == "rc.1"
    assert version.build == "build.5"
    assert str(version) == "1.2.3-rc.1+build.5"


@pytest.mark.parametrize("text", ["", "1.2", "01.2.3", "1.2.3-", "1.2.3-01", "v1.2.3", "a.b.c"])
def test_invalid_versions_are_rejected(text: str) -> None:
    with pytest.raises(ValueError):
        SemanticVersion.parse(text)


def test_precedence_follows_semver_rules() -> None:
    ordered = [
        "1.0.0-alpha",
        "1.0.0-alpha.1",
        "1.0.0-alpha.beta",
        "1.0.0-beta",
        "1.0.0-beta.2",
        "1.0.0-beta.11",
        "1.0.0-rc.1",
        "1.0.0",
        "1.0.1",
        "1.10.0",
        "2.0.0",
    ]
    versions = [SemanticVersion.parse(text) for text in ordered]

    assert sorted(reversed(versions)) == versions
    assert [str(version) for version in sorted(reversed(versions))] == ordered


def test_build_metadata_is_ignored_for_equality() -> None:
    left = SemanticVersion.parse("171.0.0+abc")
    right = SemanticVersion.parse("171.0.0+def")

    assert left == right
    assert hash(left) == hash(right)
    assert not left < right


def test_error_message_names_the_input() -> None:
    with pytest.raises(ValueError, match='Pattern "invalid format" is not a valid SemanticVersion.'):
        SemanticVersion.parse("invalid format")
