"""Polling until cluster objects reach a wanted state."""

from __future__ import annotations

import time
from collections.abc import Callable

from .helper import Helper, NotFoundError

_TIMEOUT = 180.0


class WaitTimeoutError(TimeoutError):
    """Raised when a condition is not met before the timeout."""


def poll_immediate(interval: float, timeout: float, condition: Callable[[], bool]) -> None:
    """Check ``condition`` now and then every ``interval`` seconds until true.

    Exceptions from the condition end the polling; running out of time
    raises WaitTimeoutError.
    """
    deadline = time.monotonic() + timeout
    while True:
        if condition():
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise WaitTimeoutError("timed out waiting for the condition")
        time.sleep(min(interval, remaining))


def pods_to_be_running_by_regex(helper: Helper, namespace: str, name: str) -> None:
    """Wait until all the pods of a group are running."""
    log = helper.logger
    log.info("wait for all the pods in group %s %s to be running and ready", namespace, name)

    def condition() -> bool:
        pods = helper.get_pods_by_pattern(namespace, f"{name}-*")
        if not pods:
            log.info("no pods found for %s %s", namespace, name)
            return False
        for pod in pods:
            phase = pod.get("status", {}).get("phase", "")
            if phase != "Running":
                meta = pod.get("metadata", {})
                log.info(
                    "pod %s %s not ready yet (%s)",
                    meta.get("namespace", ""), meta.get("name", ""), phase,
                )
                return False
        log.info("all the pods in daemonset %s %s are running and ready!", namespace, name)
        return True

    poll_immediate(1.0, _TIMEOUT, condition)


def pods_to_be_gone_by_regex(helper: Helper, namespace: str, name: str) -> None:
    """Wait until no pod of a group is left; remaining pods are an error."""
    log = helper.logger
    log.info("wait for all the pods in deployment %s %s to be gone", namespace, name)

    def condition() -> bool:
        pods = helper.get_pods_by_pattern(namespace, f"{name}-*")
        if pods:
            raise RuntimeError(f"still {len(pods)} pods found for {namespace} {name}")
        log.info("all pods gone for deployment %s %s are gone!", namespace, name)
        return True

    poll_immediate(10.0, _TIMEOUT, condition)


def namespace_to_be_gone(helper: Helper, namespace: str) -> None:
    """Wait until a namespace no longer exists."""
    log = helper.logger
    log.info('wait for the namespace "%s" to be gone', namespace)

    def condition() -> bool:
        try:
            helper.get_object("namespace", "", namespace)
        except NotFoundError:
            log.info('namespace "%s" gone!', namespace)
            return True
        return False

    poll_immediate(1.0, _TIMEOUT, condition)


def daemonset_to_be_running(helper: Helper, namespace: str, name: str) -> None:
    """Wait until a daemonset has all its pods ready."""
    helper.logger.info('wait for the daemonset "%s" "%s" to be running', namespace, name)
    poll_immediate(3.0, _TIMEOUT, lambda: helper.is_daemonset_running(namespace, name))


def daemonset_to_be_gone(helper: Helper, namespace: str, name: str) -> None:
    """Wait until a daemonset no longer exists."""
    helper.logger.info('wait for the daemonset "%s" "%s" to be gone', namespace, name)
    poll_immediate(3.0, _TIMEOUT, lambda: helper.is_daemonset_gone(namespace, name))