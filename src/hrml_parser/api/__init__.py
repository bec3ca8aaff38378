"""Public parsing API for HRML documents.

Progressive API disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), query()
- Level 2: Configured parser - HRMLParser class
- Level 3: Integration adapters - get_adapter() and friends
"""

from .adapters import (
    AdapterMetadata,
    AdapterRegistry,
    AdapterType,
    ConversionResult,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)
from .parser import (
    HRMLParser,
    ParseResult,
    parse,
    parse_file,
    parse_string,
    query,
)

__all__ = [
    "AdapterMetadata",
    "AdapterRegistry",
    "AdapterType",
    "ConversionResult",
    "ElementTreeAdapter",
    "HRMLParser",
    "IntegrationAdapter",
    "LxmlAdapter",
    "PandasAdapter",
    "ParseResult",
    "get_adapter",
    "list_available_adapters",
    "parse",
    "parse_file",
    "parse_string",
    "query",
    "register_adapter",
]
