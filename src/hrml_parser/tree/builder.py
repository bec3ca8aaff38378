"""Tree building for HRML token streams.

This module turns the flat token list produced by the tokenizer into a forest
of nested elements. Building happens in two passes: tokens are first collapsed
into one record per tag (opening or closing), then a stack of open elements
reconstructs parent/child relationships from the record order.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from hrml_parser.shared.config import TreeConfig
from hrml_parser.shared.errors import StructuralError
from hrml_parser.shared.logging import get_logger
from hrml_parser.tokenization import Token, TokenizationResult, TokenPosition, TokenType

# Marks a flat record as a closing tag; never present in a finished tree
CLOSER_PREFIX = "/"


@dataclass(eq=False)
class HRMLElement:
    """A single HRML element.

    Elements are treated as read-only once the builder returns them. Children
    are kept in document order and each child belongs to exactly one parent.
    """

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["HRMLElement"] = field(default_factory=list, repr=False)
    # HRML has no text nodes; kept for model completeness
    inner_text: str = ""
    start_position: Optional[TokenPosition] = None

    def __post_init__(self) -> None:
        """Validate element values."""
        if not self.tag:
            raise ValueError("Element tag cannot be empty")
        if self.tag.startswith(CLOSER_PREFIX):
            raise ValueError("Element tag cannot start with the closing-tag prefix")

    def find_child(self, tag: str) -> Optional["HRMLElement"]:
        """Find first direct child with matching tag name."""
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def find_children(self, tag: str) -> List["HRMLElement"]:
        """Find all direct children with matching tag name."""
        return [child for child in self.children if child.tag == tag]

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        """Check if element has specific attribute."""
        return name in self.attributes

    def iter(self) -> Iterator["HRMLElement"]:
        """Iterate over this element and all descendants in document order."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def _node_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag, "attributes": dict(self.attributes)}

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation.

        Built without recursion, but ``json.dumps`` of the result is still
        bounded by the interpreter recursion limit for very deep trees.
        """
        result = self._node_dict()
        stack = [(self, result)]
        while stack:
            element, node = stack.pop()
            if element.children:
                node["children"] = []
                for child in element.children:
                    child_node = child._node_dict()
                    node["children"].append(child_node)
                    stack.append((child, child_node))
        return result

    def to_outline(self) -> str:
        """Render the element as ``[BEGIN tag ...]``/``[END tag]`` lines."""
        lines: List[str] = []
        stack: List[Tuple["HRMLElement", bool]] = [(self, False)]
        while stack:
            element, closing = stack.pop()
            if closing:
                lines.append(f"[END {element.tag}]")
                continue
            attrs = "".join(
                f' ATTR({name}="{value}")' for name, value in element.attributes.items()
            )
            lines.append(f"[BEGIN {element.tag}{attrs}]")
            stack.append((element, True))
            stack.extend((child, False) for child in reversed(element.children))
        return "\n".join(lines)


@dataclass(eq=False)
class HRMLForest:
    """Ordered root elements of one HRML document with document statistics."""

    roots: List[HRMLElement] = field(default_factory=list)
    unclosed_tags: List[str] = field(default_factory=list)

    total_elements: int = field(default=0, init=False)
    total_attributes: int = field(default=0, init=False)
    max_depth: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        """Calculate document-wide statistics."""
        stack = [(root, 1) for root in reversed(self.roots)]
        while stack:
            element, depth = stack.pop()
            self.total_elements += 1
            self.total_attributes += len(element.attributes)
            self.max_depth = max(self.max_depth, depth)
            stack.extend((child, depth + 1) for child in element.children)

    def __iter__(self) -> Iterator[HRMLElement]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def iter_elements(self) -> Iterator[HRMLElement]:
        """Iterate over all elements in document order."""
        for root in self.roots:
            yield from root.iter()

    def find_root(self, tag: str) -> Optional[HRMLElement]:
        """Find first root element with matching tag name."""
        for root in self.roots:
            if root.tag == tag:
                return root
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert forest to dictionary representation."""
        result: Dict[str, Any] = {
            "total_elements": self.total_elements,
            "total_attributes": self.total_attributes,
            "max_depth": self.max_depth,
            "roots": [root.to_dict() for root in self.roots],
        }
        if self.unclosed_tags:
            result["unclosed_tags"] = list(self.unclosed_tags)
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert forest to a JSON string.

        Raises:
            RecursionError: If nesting is deeper than the interpreter
                recursion limit allows ``json`` to encode
        """
        return json.dumps(self.to_dict(), indent=indent)

    def to_outline(self) -> str:
        """Render every root with HRMLElement.to_outline."""
        return "\n".join(root.to_outline() for root in self.roots)


@dataclass
class _FlatRecord:
    """One opening or closing tag collapsed from its tokens."""

    tag: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    position: Optional[TokenPosition] = None

    @property
    def is_closer(self) -> bool:
        return self.tag.startswith(CLOSER_PREFIX)

    @property
    def closed_name(self) -> str:
        return self.tag[len(CLOSER_PREFIX):]


class HRMLTreeBuilder:
    """Builds an HRMLForest from tokens produced by HRMLTokenizer."""

    def __init__(
        self,
        config: Optional[TreeConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Tree configuration (defaults to TreeConfig())
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or TreeConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "hrml_tree_builder")

    def build(
        self, tokens: Union[Sequence[Token], TokenizationResult]
    ) -> HRMLForest:
        """Build a forest from a token sequence.

        Args:
            tokens: Token list or the TokenizationResult that holds it

        Returns:
            HRMLForest with root elements in document order

        Raises:
            StructuralError: If a closing tag has no open element to close, or
                a check enabled in TreeConfig fails
        """
        start_time = time.time()
        if isinstance(tokens, TokenizationResult):
            tokens = tokens.tokens

        records = self._flatten(tokens)
        roots, unclosed = self._nest(records)
        forest = HRMLForest(roots=roots, unclosed_tags=unclosed)

        self.logger.debug(
            "Tree building completed",
            extra={
                "record_count": len(records),
                "root_count": len(forest),
                "element_count": forest.total_elements,
                "processing_time_ms": (time.time() - start_time) * 1000,
            }
        )
        return forest

    def _flatten(self, tokens: Sequence[Token]) -> List[_FlatRecord]:
        """Collapse tokens into one record per tag, closers prefixed with '/'."""
        records: List[_FlatRecord] = []
        current = _FlatRecord()
        pending_attribute: Optional[str] = None

        for token in tokens:
            if token.type is TokenType.END_TAG:
                current.tag = CLOSER_PREFIX + token.value
                current.position = token.position
            elif token.type is TokenType.TAG_NAME:
                current.tag = token.value
                current.position = token.position
            elif token.type is TokenType.ATTR_NAME:
                pending_attribute = token.value
            elif token.type is TokenType.ATTR_VALUE:
                if pending_attribute is None:
                    self.logger.debug(
                        "Attribute value without a name ignored",
                        extra={"value": token.value}
                    )
                    continue
                # Repeated names overwrite: last write wins
                current.attributes[pending_attribute] = token.value
                pending_attribute = None
            elif token.type is TokenType.CLOSE_TAG:
                records.append(current)
                current = _FlatRecord()
                pending_attribute = None

        return records

    def _nest(self, records: List[_FlatRecord]) -> Tuple[List[HRMLElement], List[str]]:
        """Rebuild nesting from record order with a stack of open elements."""
        roots: List[HRMLElement] = []
        stack: List[HRMLElement] = []

        for record in records:
            if record.is_closer:
                self._close(stack, record)
                continue

            if not record.tag:
                raise StructuralError(
                    "Opening tag without a name", position=record.position
                )

            element = HRMLElement(
                tag=record.tag,
                attributes=record.attributes,
                start_position=record.position,
            )
            if stack:
                stack[-1].children.append(element)
            else:
                roots.append(element)
            stack.append(element)

            if self.config.max_depth is not None and len(stack) > self.config.max_depth:
                raise StructuralError(
                    f"Nesting depth exceeds {self.config.max_depth}",
                    tag=element.tag,
                    position=element.start_position,
                )

        unclosed = [element.tag for element in stack]
        if unclosed:
            if self.config.reject_unclosed:
                raise StructuralError(
                    f"Tag <{stack[-1].tag}> is never closed",
                    tag=stack[-1].tag,
                    position=stack[-1].start_position,
                )
            self.logger.warning(
                "Input ended with unclosed tags", extra={"unclosed_tags": unclosed}
            )
        return roots, unclosed

    def _close(self, stack: List[HRMLElement], record: _FlatRecord) -> None:
        name = record.closed_name
        if not stack:
            raise StructuralError(
                f"Closing tag </{name}> has no matching opening tag",
                tag=name,
                position=record.position,
            )
        if self.config.validate_closing_names and stack[-1].tag != name:
            raise StructuralError(
                f"Closing tag </{name}> does not match open tag <{stack[-1].tag}>",
                tag=name,
                position=record.position,
            )
        stack.pop()


def build(tokens: Union[Sequence[Token], TokenizationResult]) -> HRMLForest:
    """Build a forest from tokens with the default configuration."""
    return HRMLTreeBuilder().build(tokens)
