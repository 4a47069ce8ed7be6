"""kubesnap: read-only Kubernetes resource and utilization snapshots."""

__version__ = "0.1.0"
