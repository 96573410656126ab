"""Infrastructure layer for the pattern assistant.

Modules:
    metrics     Prometheus metrics registry and recording helpers.
"""
