[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tasdeployer"
version = "0.1.0"
description = "Detect the platform of a Kubernetes or OpenShift cluster and provide building blocks for topology-aware scheduling setup"
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "openshift", "scheduler", "topology", "kubectl"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tasdeployer = "tasdeployer.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tasdeployer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
