"""Creating, deleting and inspecting cluster objects."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .kubectl import Kubectl, kubectl_from_env

_log = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """Raised when a requested cluster object or resource type does not exist."""


def _is_not_found(stderr: str) -> bool:
    return "(NotFound)" in stderr or "doesn't have a resource type" in stderr


class ClusterClient:
    """Minimal cluster client that drives kubectl with JSON manifests."""

    def __init__(self, kubectl: Kubectl | None = None) -> None:
        self.kubectl = kubectl if kubectl is not None else kubectl_from_env()

    def _run(self, *args: str, stdin: str | None = None) -> str:
        proc = subprocess.run(
            self.kubectl.command(*args),
            input=stdin,
            capture_output=True,
            text=True,
        )
        if proc.returncode != 0:
            stderr = proc.stderr or ""
            message = stderr.strip() or f"kubectl exited with status {proc.returncode}"
            if _is_not_found(stderr):
                raise NotFoundError(message)
            raise RuntimeError(message)
        return proc.stdout

    def create(self, obj: dict[str, Any]) -> None:
        """Create the object described by a manifest mapping."""
        self._run("create", "-f", "-", stdin=json.dumps(obj))

    def delete(self, obj: dict[str, Any]) -> None:
        """Delete the object described by a manifest mapping."""
        self._run("delete", "-f", "-", stdin=json.dumps(obj))

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Fetch one object; raise NotFoundError if it does not exist."""
        args = ["get", kind, name, "-o", "json"]
        if namespace:
            args += ["--namespace", namespace]
        return json.loads(self._run(*args))

    def list(self, kind: str, namespace: str = "") -> list[dict[str, Any]]:
        """List objects of a kind; an empty namespace lists all namespaces."""
        args = ["get", kind, "-o", "json"]
        if namespace:
            args += ["--namespace", namespace]
        else:
            args.append("--all-namespaces")
        return list(json.loads(self._run(*args)).get("items", []))


@dataclass
class WaitableObject:
    """A manifest together with an optional wait for it to settle."""

    obj: dict[str, Any]
    wait: Callable[[], None] | None = None


def _kind_of(obj: dict[str, Any]) -> str:
    return obj.get("kind", "")


def _name_of(obj: dict[str, Any]) -> str:
    return obj.get("metadata", {}).get("name", "")


class Helper:
    """Performs and logs cluster operations on behalf of one component."""

    def __init__(
        self,
        tag: str,
        client: Any = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.tag = tag
        self.client = client if client is not None else ClusterClient()
        self.logger = logger if logger is not None else _log

    def create_object(self, obj: dict[str, Any]) -> None:
        """Create an object, logging the outcome."""
        kind, name = _kind_of(obj), _name_of(obj)
        try:
            self.client.create(obj)
        except Exception as err:
            self.logger.info('-%5s> error creating %s "%s": %s', self.tag, kind, name, err)
            raise
        self.logger.info('-%5s> created %s "%s"', self.tag, kind, name)

    def delete_object(self, obj: dict[str, Any]) -> None:
        """Delete an object, logging the outcome."""
        kind, name = _kind_of(obj), _name_of(obj)
        try:
            self.client.delete(obj)
        except Exception as err:
            self.logger.info('-%5s> error deleting %s "%s": %s', self.tag, kind, name, err)
            raise
        self.logger.info('-%5s> deleted %s "%s"', self.tag, kind, name)

    def get_object(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Fetch one object from the cluster."""
        return self.client.get(kind, namespace, name)

    def get_pods_by_pattern(self, namespace: str, pattern: str) -> list[dict[str, Any]]:
        """Return the pods whose names contain a match of the regular expression."""
        pods = self.client.list("pods")
        self.logger.debug(
            'found %d pods in namespace "%s" matching pattern "%s"', len(pods), namespace, pattern
        )
        name_re = re.compile(pattern)
        matching = []
        for pod in pods:
            name = _name_of(pod)
            match = name_re.search(name)
            if match and match.group(0):
                self.logger.debug('pod "%s" matches', name)
                matching.append(pod)
        return matching

    def get_daemonset_by_name(self, namespace: str, name: str) -> dict[str, Any]:
        """Fetch a daemonset."""
        return self.get_object("daemonset", namespace, name)

    def is_daemonset_running(self, namespace: str, name: str) -> bool:
        """Tell whether every desired pod of a daemonset is ready."""
        try:
            ds = self.get_daemonset_by_name(namespace, name)
        except NotFoundError:
            self.logger.info('daemonset "%s" "%s" not found - retrying', namespace, name)
            return False
        status = ds.get("status", {})
        desired = status.get("desiredNumberScheduled", 0)
        scheduled = status.get("currentNumberScheduled", 0)
        ready = status.get("numberReady", 0)
        self.logger.info(
            'daemonset "%s" "%s" desired %d scheduled %d ready %d',
            namespace, name, desired, scheduled, ready,
        )
        return desired > 0 and desired == ready

    def is_daemonset_gone(self, namespace: str, name: str) -> bool:
        """Tell whether a daemonset no longer exists."""
        try:
            ds = self.get_daemonset_by_name(namespace, name)
        except NotFoundError:
            self.logger.info('daemonset "%s" "%s" not found - gone away!', namespace, name)
            return True
        scheduled = ds.get("status", {}).get("currentNumberScheduled", 0)
        self.logger.info('daemonset "%s" "%s" running count %d', namespace, name, scheduled)
        return False