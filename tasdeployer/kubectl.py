"""Running kubectl and reading kubelet configuration through its proxy."""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import subprocess
import urllib.error
import urllib.request
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_KUBECTL_PATH = "/bin/kubectl"

_log = logging.getLogger(__name__)
_PROXY_RE = re.compile(r"Starting to serve on 127\.0\.0\.1:([0-9]+)")
_OPENER = urllib.request.build_opener(urllib.request.ProxyHandler({}))


@dataclass(frozen=True)
class Kubectl:
    """How to invoke kubectl: binary, kubeconfig and optional server and namespace."""

    kubectl_path: str
    kube_config: str
    apiserver: str = ""
    namespace: str = ""
    logger: logging.Logger = field(default=_log, repr=False, compare=False)

    def with_api_server(self, apiserver: str) -> "Kubectl":
        """Return a copy that talks to the given API server."""
        return replace(self, apiserver=apiserver)

    def with_namespace(self, namespace: str) -> "Kubectl":
        """Return a copy that works in the given namespace."""
        return replace(self, namespace=namespace)

    def is_ready(self) -> bool:
        """Check that kubeconfig and kubectl exist; raise OSError if not."""
        try:
            os.stat(self.kube_config)
        except OSError as err:
            raise OSError(f"invalid kubeconfig: {err}") from err
        try:
            os.stat(self.kubectl_path)
        except OSError as err:
            raise OSError(f"invalid kubectl: {err}") from err
        return True

    def arguments(self, *args: str) -> list[str]:
        """Return the full kubectl argument list for the given arguments."""
        result = [f"--kubeconfig={self.kube_config}"]
        if self.apiserver:
            result.append(f"--server={self.apiserver}")
        if self.namespace:
            result.append(f"--namespace={self.namespace}")
        result.extend(args)
        return result

    def command(self, *args: str) -> list[str]:
        """Return the command line that runs kubectl with the given arguments."""
        kubectl_args = self.arguments(*args)
        self.logger.info("running: %s %s", self.kubectl_path, kubectl_args)
        return [self.kubectl_path, *kubectl_args]

    def start(self, *args: str) -> subprocess.Popen:
        """Start kubectl with stdout and stderr piped back as text."""
        return subprocess.Popen(
            self.command(*args),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )

    def run(self, *args: str) -> subprocess.CompletedProcess:
        """Run kubectl to completion; raise CalledProcessError on failure."""
        return subprocess.run(self.command(*args), capture_output=True, text=True, check=True)


def kubectl_from_env(environ: Mapping[str, str] | None = None) -> Kubectl:
    """Build a Kubectl from KUBECONFIG, KUBECTL, HOME and PATH."""
    env = os.environ if environ is None else environ
    kube_config = env.get("KUBECONFIG")
    if kube_config is None:
        kube_config = os.path.join(env.get("HOME", ""), ".kube", "config")
        _log.info("using default kubeconfig path: %r", kube_config)
    kubectl_path = env.get("KUBECTL")
    if kubectl_path is None:
        kubectl_path = shutil.which("kubectl", path=env.get("PATH"))
        if kubectl_path is None:
            _log.info("kubectl not found, falling back to hardcoded default")
            kubectl_path = DEFAULT_KUBECTL_PATH
        _log.info("using kubectl path: %r", kubectl_path)
    return Kubectl(kubectl_path=kubectl_path, kube_config=kube_config)


def parse_proxy_port(text: str) -> int:
    """Extract the local port from the banner of ``kubectl proxy``."""
    match = _PROXY_RE.search(text)
    if match is None:
        raise ValueError(f"cannot find the proxy port in {text!r}")
    return int(match.group(1))


def decode_configz(data: str | bytes) -> dict[str, Any]:
    """Decode a kubelet configz response into the kubelet configuration mapping."""
    payload = json.loads(data)
    if not isinstance(payload, dict):
        raise ValueError("configz response is not a JSON object")
    config = payload.get("kubeletconfig", {})
    if not isinstance(config, dict):
        raise ValueError("kubeletconfig is not a JSON object")
    return config


def _fetch_configz(endpoint: str, logger: logging.Logger) -> dict[str, Any] | None:
    request = urllib.request.Request(endpoint, headers={"Accept": "application/json"})
    try:
        with _OPENER.open(request) as resp:
            status = resp.status
            body = resp.read()
    except urllib.error.HTTPError as err:
        err.close()
        logger.info("unexpected response status code for %r: %d - skipped", endpoint, err.code)
        return None
    except OSError as err:
        logger.info("request execution failed for %r: %s - skipped", endpoint, err)
        return None
    if status != 200:
        logger.info("unexpected response status code for %r: %d - skipped", endpoint, status)
        return None
    try:
        return decode_configz(body)
    except ValueError as err:
        logger.info("response decode failed for %r: %s - skipped", endpoint, err)
        return None


def get_kubelet_config_for_nodes(
    kubectl: Kubectl, node_names: Iterable[str]
) -> dict[str, dict[str, Any]]:
    """Read the kubelet configuration of each node through a ``kubectl proxy``.

    Nodes whose configuration cannot be fetched or decoded are skipped.
    """
    logger = kubectl.logger
    proc = kubectl.start("proxy", "-p", "0")
    try:
        port = parse_proxy_port(proc.stdout.readline())
        logger.info("proxy port: %d", port)
        configs: dict[str, dict[str, Any]] = {}
        for node_name in node_names:
            endpoint = f"http://127.0.0.1:{port}/api/v1/nodes/{node_name}/proxy/configz"
            logger.info("querying endpoint: %r", endpoint)
            config = _fetch_configz(endpoint, logger)
            if config is not None:
                configs[node_name] = config
        return configs
    finally:
        proc.kill()
        proc.wait()
        proc.stdout.close()
        proc.stderr.close()