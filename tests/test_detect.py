import json
import sys

import pytest

from tasdeployer.detect import (
    DETECTED_FAILURE,
    DETECTED_FROM_CLUSTER,
    DETECTED_FROM_USER,
    ClusterInfo,
    DetectionError,
    PlatformInfo,
    VersionInfo,
    detect_platform,
    detect_version,
    find_platform,
    find_version,
)
from tasdeployer.platform import MISSING_VERSION, Platform, Version


class ScriptedKubectl:
    def __init__(self, stdout="", stderr="", code=0):
        self.stdout, self.stderr, self.code = stdout, stderr, code
        self.calls = []

    def command(self, *args):
        self.calls.append(args)
        script = (
            f"import sys; sys.stdout.write({self.stdout!r}); "
            f"sys.stderr.write({self.stderr!r}); sys.exit({self.code})"
        )
        return [sys.executable, "-c", script]


def must_not_run(*args):
    raise AssertionError("detector should not be called")


def failing(*args):
    raise DetectionError("no cluster")


def test_find_platform_user_supplied():
    info, reason = find_platform(Platform.OPENSHIFT, must_not_run)
    assert reason == DETECTED_FROM_USER
    assert info == PlatformInfo(Platform.UNKNOWN, Platform.OPENSHIFT, Platform.OPENSHIFT)


def test_find_platform_autodetected():
    info, reason = find_platform(Platform.UNKNOWN, lambda: Platform.KUBERNETES)
    assert reason == DETECTED_FROM_CLUSTER
    assert info == PlatformInfo(Platform.KUBERNETES, Platform.UNKNOWN, Platform.KUBERNETES)


def test_find_platform_failure():
    info, reason = find_platform(Platform.UNKNOWN, failing)
    assert reason == DETECTED_FAILURE
    assert info.discovered == Platform.UNKNOWN


def test_find_version_user_supplied():
    info, reason = find_version(Platform.KUBERNETES, Version("v1.23.3"), must_not_run)
    assert reason == DETECTED_FROM_USER
    assert info.discovered == "v1.23.3"
    assert info.auto_detected == MISSING_VERSION


def test_find_version_autodetected_passes_platform():
    seen = []

    def detector(plat):
        seen.append(plat)
        return Version("v1.23.3")

    info, reason = find_version(Platform.OPENSHIFT, MISSING_VERSION, detector)
    assert seen == [Platform.OPENSHIFT]
    assert reason == DETECTED_FROM_CLUSTER
    assert info == VersionInfo(Version("v1.23.3"), MISSING_VERSION, Version("v1.23.3"))


def test_find_version_failure():
    info, reason = find_version(Platform.KUBERNETES, MISSING_VERSION, failing)
    assert reason == DETECTED_FAILURE
    assert info.discovered == MISSING_VERSION


def test_cluster_info_to_dict():
    info = ClusterInfo(
        PlatformInfo(Platform.KUBERNETES, Platform.UNKNOWN, Platform.KUBERNETES),
        VersionInfo(Version("v1.23.3"), MISSING_VERSION, Version("v1.23.3")),
    )
    expected = {
        "platform": {"autoDetected": "Kubernetes", "userSupplied": "Unknown", "discovered": "Kubernetes"},
        "version": {"autoDetected": "v1.23.3", "userSupplied": "", "discovered": "v1.23.3"},
    }
    assert info.to_dict() == expected
    assert json.loads(json.dumps(info.to_dict())) == expected


def test_detect_platform_openshift():
    kc = ScriptedKubectl(stdout=json.dumps({"items": [{"metadata": {"name": "version"}}]}))
    assert detect_platform(kc) == Platform.OPENSHIFT


def test_detect_platform_kubernetes_when_no_items():
    kc = ScriptedKubectl(stdout=json.dumps({"items": []}))
    assert detect_platform(kc) == Platform.KUBERNETES


def test_detect_platform_kubernetes_when_resource_missing():
    kc = ScriptedKubectl(
        stderr='error: the server doesn\'t have a resource type "clusterversions"', code=1
    )
    assert detect_platform(kc) == Platform.KUBERNETES


def test_detect_platform_error():
    kc = ScriptedKubectl(stderr="connection refused", code=1)
    with pytest.raises(DetectionError, match="connection refused"):
        detect_platform(kc)


def test_detect_version_kubernetes():
    kc = ScriptedKubectl(stdout=json.dumps({"serverVersion": {"gitVersion": "v1.23.3"}}))
    assert detect_version(Platform.KUBERNETES, kc) == Version("v1.23.3")
    assert kc.calls == [("version", "-o", "json")]


def test_detect_version_openshift():
    payload = {"status": {"versions": [{"name": "operator", "version": "4.10.3"}]}}
    kc = ScriptedKubectl(stdout=json.dumps(payload))
    assert detect_version(Platform.OPENSHIFT, kc) == Version("4.10.3")


def test_detect_version_openshift_without_operands():
    kc = ScriptedKubectl(stdout=json.dumps({"status": {"versions": []}}))
    with pytest.raises(DetectionError, match="unexpected amount of operands: 0"):
        detect_version(Platform.OPENSHIFT, kc)


def test_detect_version_malformed():
    kc = ScriptedKubectl(stdout=json.dumps({"serverVersion": {"gitVersion": "garbage"}}))
    with pytest.raises(DetectionError):
        detect_version(Platform.KUBERNETES, kc)