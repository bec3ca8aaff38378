"""Shared utilities for HRML parsing.

This module provides configuration objects, errors, diagnostic types and
logging helpers used across all processing layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    ParserConfig,
    QueryConfig,
    TokenizerConfig,
    TreeConfig,
)
from .errors import (
    BatchInputError,
    HRMLError,
    QuerySyntaxError,
    StructuralError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "BatchInputError",
    "ConfigError",
    "ConfigValidationError",
    "CorrelationLogger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "GlobalConfig",
    "HRMLError",
    "ParserConfig",
    "PerformanceMetrics",
    "QueryConfig",
    "QuerySyntaxError",
    "StructuralError",
    "TokenizerConfig",
    "TreeConfig",
    "configure_logging",
    "get_logger",
    "new_correlation_id",
]
