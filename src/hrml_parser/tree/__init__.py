"""Tree building engine for HRML parsing.

Key Components:
    HRMLTreeBuilder: Rebuilds element nesting from a flat token stream
    HRMLForest: Ordered root elements of one document
    HRMLElement: A single element with attributes and children
"""

from .builder import (
    CLOSER_PREFIX,
    HRMLElement,
    HRMLForest,
    HRMLTreeBuilder,
    build,
)

__all__ = [
    "CLOSER_PREFIX",
    "HRMLElement",
    "HRMLForest",
    "HRMLTreeBuilder",
    "build",
]
