"""
Fetch boundary: response schemas and conversion to cluster records.
"""

from clusterview.fetch.parser import (
    parse_cluster_payload,
    parse_elasticsearch_responses,
    parse_roles,
    validate_response,
)

__all__ = [
    "parse_cluster_payload",
    "parse_elasticsearch_responses",
    "parse_roles",
    "validate_response",
]
