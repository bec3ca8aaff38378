"""Integration adapters between HRML forests and popular data libraries.

Adapters convert a parsed HRMLForest into another library's representation
and back. XML libraries receive one element per HRML root, since a forest may
have several roots. Conversions never raise: failures come back as an
unsuccessful ConversionResult with an ERROR diagnostic.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from hrml_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from hrml_parser.tree import HRMLElement, HRMLForest


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # ElementTree, lxml
    DATA_FRAME = auto()      # pandas


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def _forest_to_target(self, forest: HRMLForest) -> Any:
        """Library-specific forward conversion."""

    @abstractmethod
    def _target_to_forest(self, target_data: Any) -> HRMLForest:
        """Library-specific reverse conversion."""

    def to_target(self, forest: HRMLForest) -> ConversionResult:
        """Convert an HRMLForest to the target representation."""
        return self._convert(self._forest_to_target, forest, "to")

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target data back into an HRMLForest."""
        return self._convert(self._target_to_forest, target_data, "from")

    def _convert(self, converter: Any, data: Any, direction: str) -> ConversionResult:
        start_time = time.time()
        if not self.is_available():
            return self._create_error_result(
                f"{self.metadata.target_library} is not installed", data
            )
        try:
            converted = converter(data)
        except Exception as e:
            self._logger.warning(
                f"Conversion {direction} {self.metadata.name} failed",
                extra={"error": str(e)}
            )
            return self._create_error_result(
                f"Failed to convert {direction} {self.metadata.name}: {e}",
                data,
                (time.time() - start_time) * 1000,
            )

        conversion_time = (time.time() - start_time) * 1000
        self._logger.debug(
            f"Converted {direction} {self.metadata.name}",
            extra={"conversion_time_ms": conversion_time}
        )
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=data,
            conversion_time_ms=conversion_time,
        )

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class _EtreeAdapter(IntegrationAdapter):
    """Shared element walking for ElementTree-compatible libraries."""

    @abstractmethod
    def _etree(self) -> Any:
        """Return the etree module in use."""

    def _forest_to_target(self, forest: HRMLForest) -> List[Any]:
        etree = self._etree()
        return [self._element_to_etree(root, etree) for root in forest.roots]

    def _element_to_etree(self, element: HRMLElement, etree: Any) -> Any:
        target = etree.Element(element.tag)
        for name, value in element.attributes.items():
            target.set(name, value)
        for child in element.children:
            target.append(self._element_to_etree(child, etree))
        return target

    def _target_to_forest(self, target_data: Any) -> HRMLForest:
        roots = [target_data] if hasattr(target_data, "tag") else list(target_data)
        return HRMLForest(roots=[self._etree_to_element(root) for root in roots])

    def _etree_to_element(self, target: Any) -> HRMLElement:
        if not isinstance(target.tag, str):
            raise ValueError(f"Unsupported node type: {target.tag!r}")
        return HRMLElement(
            tag=target.tag,
            attributes={str(k): str(v) for k, v in target.attrib.items()},
            children=[
                self._etree_to_element(child) for child in target
                if isinstance(child.tag, str)
            ],
        )


class ElementTreeAdapter(_EtreeAdapter):
    """Adapter for conversion with xml.etree.ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="xml.etree.ElementTree",
            description="HRMLForest roots as ElementTree elements",
        )

    def is_available(self) -> bool:
        return True

    def _etree(self) -> Any:
        import xml.etree.ElementTree as ET
        return ET


class LxmlAdapter(_EtreeAdapter):
    """Adapter for conversion with lxml.etree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="HRMLForest roots as lxml.etree elements",
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def _etree(self) -> Any:
        import lxml.etree
        return lxml.etree


class PandasAdapter(IntegrationAdapter):
    """Adapter exposing every attribute as one row of a pandas DataFrame.

    Columns are ``path`` (dotted tag path, as used in queries), ``sibling_index``
    (position of the element among its siblings, roots counted among roots),
    ``tag``, ``attribute`` and ``value``. Elements without attributes get a
    row with empty attribute and value so that structure survives the round
    trip.
    """

    COLUMNS = ["path", "sibling_index", "tag", "attribute", "value"]

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            description="HRMLForest attributes as DataFrame rows",
        )

    def is_available(self) -> bool:
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def _forest_to_target(self, forest: HRMLForest) -> Any:
        import pandas as pd

        rows: List[Dict[str, Any]] = []
        for index, root in enumerate(forest.roots):
            self._extract_rows(root, "", index, rows)
        return pd.DataFrame(rows, columns=self.COLUMNS)

    def _extract_rows(
        self, element: HRMLElement, parent_path: str, index: int,
        rows: List[Dict[str, Any]]
    ) -> None:
        path = f"{parent_path}.{element.tag}" if parent_path else element.tag
        if element.attributes:
            for name, value in element.attributes.items():
                rows.append({"path": path, "sibling_index": index, "tag": element.tag,
                             "attribute": name, "value": value})
        else:
            rows.append({"path": path, "sibling_index": index, "tag": element.tag,
                         "attribute": "", "value": ""})
        for child_index, child in enumerate(element.children):
            self._extract_rows(child, path, child_index, rows)

    def _target_to_forest(self, target_data: Any) -> HRMLForest:
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            raise TypeError("Target data is not a pandas DataFrame")
        missing = [c for c in self.COLUMNS if c not in target_data.columns]
        if missing:
            raise ValueError(f"DataFrame is missing columns: {missing}")

        # Key: tuple of sibling indices from the root down
        elements: Dict[Tuple[int, ...], HRMLElement] = {}
        roots: List[HRMLElement] = []
        index_paths: Dict[str, List[int]] = {}
        for row in target_data.itertuples(index=False):
            parent_key = tuple(index_paths.get(row.path.rpartition(".")[0], []))
            key = parent_key + (int(row.sibling_index),)
            element = elements.get(key)
            if element is None:
                element = HRMLElement(tag=row.tag)
                elements[key] = element
                if parent_key:
                    elements[parent_key].children.append(element)
                else:
                    roots.append(element)
            index_paths[row.path] = list(key)
            if row.attribute:
                element.attributes[row.attribute] = row.value
        return HRMLForest(roots=roots)


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self, adapter_name: str, correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name, or None if unknown or unavailable."""
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List metadata of adapters whose target library is importable."""
        with self._lock:
            classes: Iterable[Type[IntegrationAdapter]] = list(self._adapters.values())
        instances = [adapter_class() for adapter_class in classes]
        return [a.metadata for a in instances if a.is_available()]


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str, correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()


for _adapter_class in (ElementTreeAdapter, LxmlAdapter, PandasAdapter):
    register_adapter(_adapter_class)
