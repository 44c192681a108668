"""Detect a cluster's platform and version, report component images, and manage cluster objects."""

__version__ = "0.1.0"