"""Query resolution for HRML forests.

Key Components:
    AttributeQuery: Parsed ``tag.tag~attribute`` query
    QueryResolver: Resolves queries, singly or as an ordered batch
    NOT_FOUND: Sentinel returned for any miss
"""

from .resolver import NOT_FOUND, AttributeQuery, QueryResolver, resolve

__all__ = [
    "NOT_FOUND",
    "AttributeQuery",
    "QueryResolver",
    "resolve",
]
