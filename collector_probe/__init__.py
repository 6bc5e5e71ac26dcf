"""Helpers for querying a running collector's introspection endpoints."""

from collector_probe.introspection import (
    IntrospectionError,
    IntrospectionStatusError,
    IntrospectionURLError,
    build_introspection_url,
    introspection_query,
)

__all__ = [
    "IntrospectionError",
    "IntrospectionStatusError",
    "IntrospectionURLError",
    "build_introspection_url",
    "introspection_query",
]
