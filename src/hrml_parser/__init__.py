"""HRML Parser.

Tokenizes HRML markup, rebuilds its element tree and answers dotted-path
attribute queries such as ``tag1.tag2~name``.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), query()
- Level 2: Configured parser - HRMLParser class
- Level 3: Integration adapters - hrml_parser.api.get_adapter()
"""

__version__ = "0.1.0"
__author__ = "HRML Parser Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Advanced configuration
from .api import HRMLParser, ParseResult, parse, parse_file, parse_string, query
from .query import NOT_FOUND

# Configuration classes and errors for advanced usage
from .shared import (
    BatchInputError,
    ConfigError,
    HRMLError,
    ParserConfig,
    QuerySyntaxError,
    StructuralError,
)

# Core data structures
from .tree import HRMLElement, HRMLForest

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",
    "query",

    # Level 2: Advanced parser class
    "HRMLParser",

    # Result objects and data structures
    "ParseResult",
    "HRMLForest",
    "HRMLElement",
    "NOT_FOUND",

    # Configuration and errors
    "ParserConfig",
    "ConfigError",
    "HRMLError",
    "StructuralError",
    "QuerySyntaxError",
    "BatchInputError",
]
