import pytest

from .versioning import Version, find_version_line, parse_version


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("v1.6.2771-preview", Version(1, 6, 2771)),
        ("v1.7.10861", Version(1, 7, 10861)),
        ("1.2.3", Version(1, 2, 3)),
        ("  v1.5.441-preview  ", Version(1, 5, 441)),
    ],
)
def test_parse_version(raw, expected):
    assert parse_version(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "unknown-format-string",
        "",
        None,
        "v1.6",
        "v1.6.2.1",
        "vx.y.z",
        "version 1.2.3",
    ],
)
def test_unrecognized_version_is_zero(raw):
    assert parse_version(raw) == Version(0, 0, 0)
    assert parse_version(raw).is_zero


def test_version_ordering():
    assert Version(1, 6, 0) > Version(1, 5, 3521)
    assert Version(1, 10, 0) > Version(1, 9, 99)
    assert Version.zero() < Version(0, 0, 1)


def test_version_text():
    version = Version(1, 6, 2771)
    assert str(version) == "1.6.2771"
    assert version.to_dict() == {"major": 1, "minor": 6, "patch": 2771}


def test_find_version_line():
    assert find_version_line(["", "  v1.6.2771  ", "other"]) == "v1.6.2771"
    assert find_version_line(["no version here"]) == ""
    assert find_version_line([]) == ""
