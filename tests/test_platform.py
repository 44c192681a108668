import pytest

from tasdeployer.platform import (
    MISSING_VERSION,
    Platform,
    Version,
    parse_platform,
    parse_version,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("kubernetes", Platform.KUBERNETES),
        ("KUBERNETES", Platform.KUBERNETES),
        ("OpenShift", Platform.OPENSHIFT),
        ("openshift", Platform.OPENSHIFT),
        ("nomad", Platform.UNKNOWN),
        ("", Platform.UNKNOWN),
    ],
)
def test_parse_platform(text, expected):
    assert parse_platform(text) is expected


def test_platform_string_form():
    assert str(parse_platform("openshift")) == "OpenShift"
    assert str(parse_platform("kubernetes")) == "Kubernetes"
    assert str(parse_platform("nomad")) == "Unknown"


def test_platform_round_trip_through_name():
    for plat in (Platform.KUBERNETES, Platform.OPENSHIFT):
        assert parse_platform(str(plat)) is plat


@pytest.mark.parametrize("text", ["v1.22", "1.23.3", "v1.23.3+k3s1", "4.10.0-rc.1"])
def test_parse_version_keeps_text(text):
    version = parse_version(text)
    assert version == text
    assert isinstance(version, Version)


@pytest.mark.parametrize("text", ["", "not-a-version", "v", "1..2", "1.2-"])
def test_parse_version_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_version(text)


def test_at_least_newer_and_equal():
    assert Version("v1.23.3").at_least_string("1.22") is True
    assert Version("1.22").at_least_string("v1.22.0") is True
    assert Version("v1.21.9").at_least_string("1.22") is False


def test_at_least_with_version_argument():
    assert Version("4.10.3").at_least(Version("4.10")) is True
    assert Version("4.9").at_least(Version("4.10")) is False


def test_prerelease_sorts_before_release():
    assert Version("1.23.0-rc.1").at_least_string("1.23.0") is False
    assert Version("1.23.0").at_least_string("1.23.0-rc.1") is True
    assert Version("1.23.0-rc.2").at_least_string("1.23.0-rc.1") is True


def test_build_metadata_is_ignored_in_comparison():
    assert Version("v1.23.3+k3s1").at_least_string("1.23.3") is True
    assert Version("1.23.3").at_least_string("v1.23.3+k3s1") is True


def test_missing_version_cannot_be_compared():
    assert MISSING_VERSION == ""
    with pytest.raises(ValueError):
        MISSING_VERSION.at_least_string("1.0")


def test_invalid_reference_raises():
    with pytest.raises(ValueError):
        Version("1.22").at_least_string("bogus")