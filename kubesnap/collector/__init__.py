"""Collector package for kubesnap.

Submodules
----------
fetcher -- ScopeAwareFetcher: one list call per kind, failures isolated.
metrics -- MetricsAdapter: node and pod usage samples from metrics.k8s.io.
"""
