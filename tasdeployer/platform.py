"""Cluster platform kinds and platform versions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

ROLE_WORKER = "worker"
LABEL_ROLE = "node-role.kubernetes.io"
FILE_PATH_KUBELET_CONFIG = "/etc/kubernetes/kubelet.conf"


class Platform(str, Enum):
    """The kind of cluster the components are deployed on."""

    UNKNOWN = "Unknown"
    KUBERNETES = "Kubernetes"
    OPENSHIFT = "OpenShift"

    def __str__(self) -> str:
        return self.value


_PLATFORMS_BY_NAME = {
    "kubernetes": Platform.KUBERNETES,
    "openshift": Platform.OPENSHIFT,
}


def parse_platform(text: str) -> Platform:
    """Parse a platform name, case-insensitively; unrecognised names give UNKNOWN."""
    return _PLATFORMS_BY_NAME.get(text.lower(), Platform.UNKNOWN)


_IDENT = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_VERSION_RE = re.compile(
    r"^\s*v?(?P<release>[0-9]+(?:\.[0-9]+)*)"
    rf"(?:-(?P<pre>{_IDENT}))?"
    rf"(?:\+(?P<meta>{_IDENT}))?\s*$"
)


@dataclass(frozen=True)
class _ParsedVersion:
    release: tuple[int, ...]
    prerelease: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "_ParsedVersion":
        match = _VERSION_RE.match(text)
        if match is None:
            raise ValueError(f"malformed version: {text!r}")
        release = tuple(int(part) for part in match["release"].split("."))
        pre = match["pre"]
        prerelease = tuple(pre.split(".")) if pre else ()
        return cls(release, prerelease)

    def sort_key(self) -> tuple:
        release = list(self.release)
        while release and release[-1] == 0:
            release.pop()
        pre_key = tuple(
            (0, int(ident), "") if ident.isdigit() else (1, 0, ident)
            for ident in self.prerelease
        )
        # a release sorts after any of its pre-releases
        return (tuple(release), 0 if self.prerelease else 1, pre_key)


class Version(str):
    """A platform version string, such as ``v1.23.3`` or ``4.10``."""

    def at_least_string(self, other: str) -> bool:
        """Tell whether this version is equal to or newer than ``other``."""
        reference = _ParsedVersion.parse(other)
        own = _ParsedVersion.parse(str(self))
        return own.sort_key() >= reference.sort_key()

    def at_least(self, other: "Version") -> bool:
        """Tell whether this version is equal to or newer than another version."""
        return self.at_least_string(str(other))

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"


MISSING_VERSION = Version("")


def parse_version(text: str) -> Version:
    """Validate a version string and return it as a Version; raise ValueError if malformed."""
    _ParsedVersion.parse(text)
    return Version(text)