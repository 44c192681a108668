"""Container images used by the deployed components."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

SCHEDULER_PLUGIN_SCHEDULER_DEFAULT_IMAGE_TAG = (
    "quay.io/k8stopologyawareschedwg/scheduler-plugins-kube-scheduler:v0.0.2021112403"
)
SCHEDULER_PLUGIN_CONTROLLER_DEFAULT_IMAGE_TAG = (
    "quay.io/k8stopologyawareschedwg/scheduler-plugins-controller:v0.0.2021112403"
)
RESOURCE_TOPOLOGY_EXPORTER_DEFAULT_IMAGE_TAG = (
    "quay.io/k8stopologyawareschedwg/resource-topology-exporter:v0.3.1"
)
NODE_FEATURE_DISCOVERY_DEFAULT_IMAGE_TAG = "gcr.io/k8s-staging-nfd/node-feature-discovery:v0.10.1"

SCHEDULER_PLUGIN_SCHEDULER_DEFAULT_IMAGE_SHA = (
    "quay.io/k8stopologyawareschedwg/scheduler-plugins-kube-scheduler"
    "@sha256:c885039e4cceb19ba3acbc12a7a56846cd0a0c8a69bbe185abcd6124df51b056"
)
SCHEDULER_PLUGIN_CONTROLLER_DEFAULT_IMAGE_SHA = (
    "quay.io/k8stopologyawareschedwg/scheduler-plugins-controller"
    "@sha256:4d0111cafb1320e260f5ebe7531c742e4b3617fbdb9d30510321237615cf3e1c"
)
RESOURCE_TOPOLOGY_EXPORTER_DEFAULT_IMAGE_SHA = (
    "quay.io/k8stopologyawareschedwg/resource-topology-exporter"
    "@sha256:93c4a41ce90dc7c4e286f8d1ba262405f20582f970992e7daee702ece1b6f3ad"
)
NODE_FEATURE_DISCOVERY_DEFAULT_IMAGE_SHA = (
    "gcr.io/k8s-staging-nfd/node-feature-discovery"
    "@sha256:4aebf17c8b72ee91cb468a6f21dd9f0312c1fcfdf8c86341f7aee0ec2d5991d7"
)

ENV_SCHEDULER_PLUGIN_IMAGE = "TAS_SCHEDULER_PLUGIN_IMAGE"
ENV_SCHEDULER_PLUGIN_CONTROLLER_IMAGE = "TAS_SCHEDULER_PLUGIN_CONTROLLER_IMAGE"
ENV_RESOURCE_EXPORTER_IMAGE = "TAS_RESOURCE_EXPORTER_IMAGE"
ENV_NODE_FEATURE_DISCOVERY_IMAGE = "TAS_NODE_FEATURE_DISCOVERY_IMAGE"


@dataclass(frozen=True)
class Images:
    """The image pull specs used when rendering and deploying components."""

    scheduler_plugin_scheduler: str
    scheduler_plugin_controller: str
    resource_topology_exporter: str
    node_feature_discovery: str


def resolve_images(environ: Mapping[str, str] | None = None) -> Images:
    """Return the images to use, honouring the TAS_* environment overrides."""
    env = os.environ if environ is None else environ
    return Images(
        scheduler_plugin_scheduler=env.get(
            ENV_SCHEDULER_PLUGIN_IMAGE, SCHEDULER_PLUGIN_SCHEDULER_DEFAULT_IMAGE_TAG
        ),
        # the controller falls back to the scheduler image when not overridden
        scheduler_plugin_controller=env.get(
            ENV_SCHEDULER_PLUGIN_CONTROLLER_IMAGE, SCHEDULER_PLUGIN_SCHEDULER_DEFAULT_IMAGE_TAG
        ),
        resource_topology_exporter=env.get(
            ENV_RESOURCE_EXPORTER_IMAGE, RESOURCE_TOPOLOGY_EXPORTER_DEFAULT_IMAGE_TAG
        ),
        node_feature_discovery=env.get(
            ENV_NODE_FEATURE_DISCOVERY_IMAGE, NODE_FEATURE_DISCOVERY_DEFAULT_IMAGE_TAG
        ),
    )