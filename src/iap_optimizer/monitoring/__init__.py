"""Monitoring package for Prometheus metrics."""
