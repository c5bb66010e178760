"""Logging and metrics for restartwatch."""
