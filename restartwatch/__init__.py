"""restartwatch: alerts on Kubernetes container restarts."""

__version__ = "0.1.0"
