"""Observability: structlog configuration and Prometheus metrics."""
