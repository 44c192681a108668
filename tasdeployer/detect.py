"""Working out the cluster platform and its version."""

from __future__ import annotations

import json
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .helper import ClusterClient, NotFoundError
from .kubectl import Kubectl
from .platform import MISSING_VERSION, Platform, Version, parse_version

DETECTED_FROM_USER = "user-supplied"
DETECTED_FROM_CLUSTER = "autodetected from cluster"
DETECTED_FAILURE = "autodetection failed"


class DetectionError(Exception):
    """Raised when the platform or its version cannot be detected."""


@dataclass
class PlatformInfo:
    """The platform as detected, as supplied by the user, and as settled on."""

    auto_detected: Platform = Platform.UNKNOWN
    user_supplied: Platform = Platform.UNKNOWN
    discovered: Platform = Platform.UNKNOWN

    def _as_dict(self) -> dict[str, str]:
        return {
            "autoDetected": str(self.auto_detected),
            "userSupplied": str(self.user_supplied),
            "discovered": str(self.discovered),
        }


@dataclass
class VersionInfo:
    """The version as detected, as supplied by the user, and as settled on."""

    auto_detected: Version = MISSING_VERSION
    user_supplied: Version = MISSING_VERSION
    discovered: Version = MISSING_VERSION

    def _as_dict(self) -> dict[str, str]:
        return {
            "autoDetected": str(self.auto_detected),
            "userSupplied": str(self.user_supplied),
            "discovered": str(self.discovered),
        }


@dataclass
class ClusterInfo:
    """Platform and version of a cluster."""

    platform: PlatformInfo = field(default_factory=PlatformInfo)
    version: VersionInfo = field(default_factory=VersionInfo)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this information."""
        return {"platform": self.platform._as_dict(), "version": self.version._as_dict()}


def detect_platform(kubectl: Kubectl | None = None) -> Platform:
    """Ask the cluster whether it is OpenShift or plain Kubernetes."""
    client = ClusterClient(kubectl)
    try:
        items = client.list("clusterversions")
    except NotFoundError:
        return Platform.KUBERNETES
    except (RuntimeError, OSError, ValueError) as err:
        raise DetectionError(str(err)) from err
    return Platform.OPENSHIFT if items else Platform.KUBERNETES


def _openshift_version(client: ClusterClient) -> str:
    try:
        operator = client.get("clusteroperator", "", "openshift-apiserver")
    except (LookupError, RuntimeError, OSError, ValueError) as err:
        raise DetectionError(str(err)) from err
    versions = operator.get("status", {}).get("versions") or []
    if not versions:
        raise DetectionError(f"unexpected amount of operands: {len(versions)}")
    return versions[0].get("version", "")


def _kubernetes_version(client: ClusterClient) -> str:
    try:
        proc = subprocess.run(
            client.kubectl.command("version", "-o", "json"),
            capture_output=True,
            text=True,
        )
    except OSError as err:
        raise DetectionError(str(err)) from err
    if proc.returncode != 0:
        raise DetectionError(proc.stderr.strip() or f"kubectl exited with status {proc.returncode}")
    try:
        return json.loads(proc.stdout)["serverVersion"]["gitVersion"]
    except (ValueError, KeyError, TypeError) as err:
        raise DetectionError(f"cannot read the server version: {err}") from err


def detect_version(plat: Platform, kubectl: Kubectl | None = None) -> Version:
    """Ask the cluster for its version, according to its platform."""
    client = ClusterClient(kubectl)
    if plat == Platform.OPENSHIFT:
        text = _openshift_version(client)
    else:
        text = _kubernetes_version(client)
    try:
        return parse_version(text)
    except ValueError as err:
        raise DetectionError(str(err)) from err


def find_platform(
    user_supplied: Platform,
    detector: Callable[[], Platform] | None = None,
) -> tuple[PlatformInfo, str]:
    """Settle on a platform, preferring the user's choice; return it with the reason."""
    info = PlatformInfo(user_supplied=user_supplied)
    if user_supplied != Platform.UNKNOWN:
        info.discovered = user_supplied
        return info, DETECTED_FROM_USER
    detect = detector if detector is not None else detect_platform
    try:
        detected = detect()
    except (DetectionError, OSError, ValueError):
        return info, DETECTED_FAILURE
    info.auto_detected = detected
    info.discovered = detected
    return info, DETECTED_FROM_CLUSTER


def find_version(
    plat: Platform,
    user_supplied: Version,
    detector: Callable[[Platform], Version] | None = None,
) -> tuple[VersionInfo, str]:
    """Settle on a version, preferring the user's choice; return it with the reason."""
    info = VersionInfo(user_supplied=user_supplied)
    if user_supplied != MISSING_VERSION:
        info.discovered = user_supplied
        return info, DETECTED_FROM_USER
    detect = detector if detector is not None else detect_version
    try:
        detected = detect(plat)
    except (DetectionError, OSError, ValueError):
        return info, DETECTED_FAILURE
    info.auto_detected = detected
    info.discovered = detected
    return info, DETECTED_FROM_CLUSTER