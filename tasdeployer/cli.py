"""Command line entry point of the topology-aware-scheduling deployer."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any, Callable

from .detect import ClusterInfo, find_platform, find_version
from .images import (
    NODE_FEATURE_DISCOVERY_DEFAULT_IMAGE_TAG,
    RESOURCE_TOPOLOGY_EXPORTER_DEFAULT_IMAGE_TAG,
    SCHEDULER_PLUGIN_CONTROLLER_DEFAULT_IMAGE_TAG,
    SCHEDULER_PLUGIN_SCHEDULER_DEFAULT_IMAGE_TAG,
    Images,
)
from .platform import MISSING_VERSION, Platform, Version, parse_platform, parse_version

UPDATER_RTE = "RTE"
UPDATER_NFD = "NFD"

try:
    GIT_VERSION = metadata.version("tasdeployer")
except metadata.PackageNotFoundError:
    GIT_VERSION = "0.0.0"
GIT_COMMIT = "unknown"

_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"


def _make_logger(name: str, stream: Any, enabled: bool) -> logging.Logger:
    logger = logging.Logger(name)
    logger.propagate = False
    if enabled:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", _TIME_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.addHandler(logging.NullHandler())
        logger.disabled = True
    return logger


def _discard_logger() -> logging.Logger:
    return _make_logger("tasdeployer.discard", None, False)


@dataclass
class CommonOptions:
    """Options shared by every command."""

    debug: bool = False
    user_platform: Platform = Platform.UNKNOWN
    user_platform_version: Version = MISSING_VERSION
    replicas: int = 1
    rte_config_data: str = ""
    pull_if_not_present: bool = False
    updater_type: str = UPDATER_RTE
    log: logging.Logger = field(default_factory=_discard_logger, repr=False, compare=False)
    debug_log: logging.Logger = field(default_factory=_discard_logger, repr=False, compare=False)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def parse_platform_spec(spec: str) -> tuple[Platform, Version]:
    """Parse ``kind:version``; an empty spec means unknown platform and no version."""
    if not spec:
        return Platform.UNKNOWN, MISSING_VERSION
    fields = [part for part in spec.split(":") if part]
    if len(fields) != 2:
        raise ValueError(f"unsupported platform spec: {_quote(spec)}")
    plat = parse_platform(fields[0])
    try:
        version = parse_version(fields[1])
    except ValueError:
        version = MISSING_VERSION
    return plat, version


def validate_updater_type(updater_type: str) -> None:
    """Raise ValueError unless the updater type is RTE or NFD."""
    if updater_type not in (UPDATER_RTE, UPDATER_NFD):
        raise ValueError(f"{_quote(updater_type)} is invalid updater type")


def _encode_json(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text + "\n"


def _image_output(images: Images) -> dict[str, str]:
    return {
        "topology_updater": images.resource_topology_exporter,
        "scheduler_plugin": images.scheduler_plugin_scheduler,
        "scheduler_controller": images.scheduler_plugin_controller,
    }


def images_text(images: Images, raw: bool) -> str:
    """Render the images as text: ``KEY=value`` lines, or one image per line if raw."""
    out = _image_output(images)
    if raw:
        return "\n".join(out.values()) + "\n"
    return (
        f"TAS_SCHEDULER_PLUGIN_IMAGE={out['scheduler_plugin']}\n"
        f"TAS_SCHEDULER_PLUGIN_CONTROLLER_IMAGE={out['scheduler_controller']}\n"
        f"TAS_RESOURCE_EXPORTER_IMAGE={out['topology_updater']}\n"
    )


def images_json(images: Images, raw: bool) -> str:
    """Render the images as JSON: an object, or a plain list if raw."""
    out = _image_output(images)
    return _encode_json(list(out.values()) if raw else out)


def version_text(git_version: str, git_commit: str, full: bool, hash_only: bool) -> str:
    """Return the version line: the hash alone, version plus short hash, or the version."""
    if hash_only:
        return git_commit
    if full:
        return f"{git_version}-{git_commit[:9]}"
    return git_version


def _default_images() -> Images:
    return Images(
        scheduler_plugin_scheduler=SCHEDULER_PLUGIN_SCHEDULER_DEFAULT_IMAGE_TAG,
        scheduler_plugin_controller=SCHEDULER_PLUGIN_CONTROLLER_DEFAULT_IMAGE_TAG,
        resource_topology_exporter=RESOURCE_TOPOLOGY_EXPORTER_DEFAULT_IMAGE_TAG,
        node_feature_discovery=NODE_FEATURE_DISCOVERY_DEFAULT_IMAGE_TAG,
    )


def _setup_options(args: argparse.Namespace) -> CommonOptions:
    debug_log = _make_logger("tasdeployer.debug", sys.stderr, args.debug)
    log = _make_logger("tasdeployer.log", sys.stdout, True)
    plat, version = parse_platform_spec(args.platform)
    rte_config_data = ""
    if args.rte_config_file:
        data = Path(args.rte_config_file).read_bytes()
        rte_config_data = data.decode("utf-8", errors="replace")
        debug_log.debug("RTE config: read %d bytes", len(data))
    validate_updater_type(args.updater_type)
    return CommonOptions(
        debug=args.debug,
        user_platform=plat,
        user_platform_version=version,
        replicas=args.replicas,
        rte_config_data=rte_config_data,
        pull_if_not_present=args.pull_if_not_present,
        updater_type=args.updater_type,
        log=log,
        debug_log=debug_log,
    )


def _run_version(args: argparse.Namespace, opts: CommonOptions) -> None:
    sys.stdout.write(version_text(GIT_VERSION, GIT_COMMIT, args.full, args.hash) + "\n")


def _run_images(args: argparse.Namespace, opts: CommonOptions) -> None:
    images = _default_images()
    render = images_json if args.json else images_text
    sys.stdout.write(render(images, args.raw))


def _run_detect(args: argparse.Namespace, opts: CommonOptions) -> None:
    plat_info, reason = find_platform(opts.user_platform)
    opts.debug_log.debug("platform kind %s (%s)", plat_info.discovered, reason)
    ver_info, reason = find_version(plat_info.discovered, opts.user_platform_version)
    opts.debug_log.debug("platform version %s (%s)", ver_info.discovered, reason)
    cluster = ClusterInfo(platform=plat_info, version=ver_info)
    if args.json:
        sys.stdout.write(_encode_json(cluster.to_dict()))
    else:
        sys.stdout.write(f"{cluster.platform.discovered}:{cluster.version.discovered}\n")


def _add_common_flags(parser: argparse.ArgumentParser, inherited: bool) -> None:
    def default(value: Any) -> Any:
        return argparse.SUPPRESS if inherited else value

    parser.add_argument(
        "-D", "--debug", action="store_true", default=default(False), help="enable debug log"
    )
    parser.add_argument(
        "-P",
        "--platform",
        default=default(""),
        help="platform kind:version to deploy on (example kubernetes:v1.22)",
    )
    parser.add_argument(
        "-R",
        "--replicas",
        type=int,
        default=default(1),
        help="set the replica value - where relevant.",
    )
    parser.add_argument(
        "--pull-if-not-present",
        action="store_true",
        default=default(False),
        help="force pull policies to IfNotPresent.",
    )
    parser.add_argument(
        "--rte-config-file",
        default=default(""),
        help="inject rte configuration reading from this file.",
    )
    parser.add_argument(
        "--updater-type",
        default=default(UPDATER_RTE),
        help="type of updater to deploy - RTE or NFD",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the root flags and all subcommands."""
    root = argparse.ArgumentParser(
        prog="deployer",
        description=(
            "deployer helps setting up all the topology-aware-scheduling "
            "components on a kubernetes cluster"
        ),
    )
    _add_common_flags(root, inherited=False)
    root.set_defaults(handler=None)
    sub = root.add_subparsers(dest="command")

    detect = sub.add_parser("detect", help="detect the cluster platform (kubernetes, openshift...)")
    _add_common_flags(detect, inherited=True)
    detect.add_argument("-J", "--json", action="store_true", help="output JSON, not text.")
    detect.set_defaults(handler=_run_detect)

    images = sub.add_parser("images", help="dump the container images used to deploy")
    _add_common_flags(images, inherited=True)
    images.add_argument(
        "-J", "--json", action="store_true", help="output JSON, not text (default)."
    )
    images.add_argument(
        "-r", "--raw", action="store_true", help="output raw list. Default is key=value object."
    )
    images.set_defaults(handler=_run_images)

    version = sub.add_parser("version", help="emit the version and exits succesfully")
    _add_common_flags(version, inherited=True)
    version.add_argument("--full", action="store_true", help="emit version and git hash.")
    version.add_argument("--hash", action="store_true", help="emit only the git hash.")
    version.set_defaults(handler=_run_version)

    return root


def main(argv: list[str] | None = None) -> int:
    """Run the deployer command line; return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    handler: Callable[[argparse.Namespace, CommonOptions], None] | None = args.handler
    try:
        opts = _setup_options(args)
        if handler is None:
            sys.stderr.write(parser.format_help())
        else:
            handler(args, opts)
    except (ValueError, OSError) as err:
        sys.stderr.write(f"{err}\n")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())