# tasdeployer

`tasdeployer` works with the components of topology-aware scheduling on a
Kubernetes or OpenShift cluster. It finds out which platform and version a
cluster runs, reports the container images the components use, and offers
building blocks for creating, deleting, looking up and waiting on cluster
objects.

It talks to the cluster by running `kubectl`. Which binary and which
kubeconfig it uses comes from the `KUBECTL` and `KUBECONFIG` environment
variables. If they are not set, it uses `kubectl` found on `PATH` (or
`/bin/kubectl` when none is found) and `$HOME/.kube/config`.

## Installation

```
pip install .
```

## Command line

```
tasdeployer [-D|--debug] [-P KIND:VERSION] [-R|--replicas N]
            [--pull-if-not-present] [--rte-config-file PATH]
            [--updater-type RTE|NFD] COMMAND
```

The common options may also be given after the command. `--updater-type`
must be `RTE` or `NFD`; anything else is an error. `-P` takes the form
`kind:version`, for example `kubernetes:v1.24`; the kind is matched without
regard to case, and a spec without exactly two parts is an error. With
`--debug`, diagnostic messages go to standard error. Without a command, the
help text is printed to standard error.

### Finding out the cluster platform

```
tasdeployer detect
tasdeployer detect --json
```

The text output has the form `Kubernetes:v1.23.3`. A cluster that lists
`clusterversions` objects is taken for OpenShift, and its version is read
from the `openshift-apiserver` cluster operator; otherwise the server version
reported by `kubectl version` is used. When detection fails, the platform is
`Unknown` and the version is empty. The JSON output lists the platform and
the version, each one with the `autoDetected`, `userSupplied` and
`discovered` value. To skip detection, give the platform yourself:

```
tasdeployer -P kubernetes:v1.24 detect
```

### Listing the container images

```
tasdeployer images
tasdeployer images --json
tasdeployer images --raw
tasdeployer images --raw --json
```

Without `--raw` the output has `KEY=value` lines, ready to be sourced by a
shell:

```
TAS_SCHEDULER_PLUGIN_IMAGE=...
TAS_SCHEDULER_PLUGIN_CONTROLLER_IMAGE=...
TAS_RESOURCE_EXPORTER_IMAGE=...
```

With `--raw` it prints one image per line (or a JSON list with `--json`).
The command always reports the built-in default images.

### Version

```
tasdeployer version
tasdeployer version --full
tasdeployer version --hash
```

The version is that of the installed package; no commit hash is recorded, so
`--hash` prints `unknown`.

## Library use

```python
from tasdeployer.platform import Platform, parse_platform, parse_version
from tasdeployer.images import resolve_images
from tasdeployer.kubectl import kubectl_from_env
from tasdeployer.detect import find_platform, find_version

images = resolve_images({"TAS_RESOURCE_EXPORTER_IMAGE": "quay.io/example/rte:test"})

version = parse_version("v1.23.3")
version.at_least_string("v1.21")   # True

info, reason = find_platform(parse_platform("kubernetes"))
# info.discovered is Platform.KUBERNETES, reason is "user-supplied"
```

- `tasdeployer.platform`: `Platform`, `Version`, `parse_platform`,
  `parse_version` (raises `ValueError` on a malformed version).
- `tasdeployer.images`: `resolve_images(environ)` returns an `Images` record,
  honouring `TAS_SCHEDULER_PLUGIN_IMAGE`,
  `TAS_SCHEDULER_PLUGIN_CONTROLLER_IMAGE`, `TAS_RESOURCE_EXPORTER_IMAGE` and
  `TAS_NODE_FEATURE_DISCOVERY_IMAGE`. When the controller image is not
  overridden, it falls back to the scheduler plugin image.
- `tasdeployer.kubectl`: `Kubectl` builds and runs kubectl command lines;
  `get_kubelet_config_for_nodes` reads each node's kubelet configuration
  through `kubectl proxy`, skipping nodes that cannot be read.
- `tasdeployer.detect`: `find_platform`, `find_version`, `detect_platform`,
  `detect_version`, `ClusterInfo`.
- `tasdeployer.helper`: `Helper` creates, deletes and looks up cluster
  objects through a `ClusterClient`; a missing object raises `NotFoundError`.
- `tasdeployer.wait`: polls until pods, daemonsets or namespaces reach the
  expected state, and raises `WaitTimeoutError` when they do not do so in
  time.

## What it does not do

The package carries no manifests for the scheduler plugin, the topology
updaters or the API, so it has no commands to render, deploy, remove,
validate or set up these components. `Helper` and the `wait` functions are
the pieces such commands would be built from, applied to manifests you
supply as mappings.

## Running the tests

```
pip install ".[test]"
pytest
```