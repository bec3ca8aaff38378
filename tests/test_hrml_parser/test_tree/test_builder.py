"""Tests for HRML tree building."""

import json
from unittest.mock import patch

import pytest

from hrml_parser.shared.config import TreeConfig
from hrml_parser.shared.errors import StructuralError
from hrml_parser.tokenization import HRMLTokenizer, Token, TokenType, tokenize
from hrml_parser.tree import HRMLElement, HRMLForest, HRMLTreeBuilder, build


def build_text(text, config=None):
    """Tokenize and build ``text`` in one step."""
    return HRMLTreeBuilder(config).build(tokenize(text))


class TestHRMLElement:
    """Test the element data structure."""

    def test_tag_validation(self):
        """Test that empty and closer-like tags are rejected."""
        with pytest.raises(ValueError, match="Element tag cannot be empty"):
            HRMLElement(tag="")
        with pytest.raises(ValueError, match="closing-tag prefix"):
            HRMLElement(tag="/a")

    def test_children_lookup(self):
        """Test first-match and all-match child lookup."""
        first, second = HRMLElement("b", {"n": "1"}), HRMLElement("b", {"n": "2"})
        parent = HRMLElement("a", children=[HRMLElement("c"), first, second])
        assert parent.find_child("b") is first
        assert parent.find_children("b") == [first, second]
        assert parent.find_child("z") is None

    def test_attribute_access(self):
        """Test attribute helpers."""
        element = HRMLElement("a", {"x": ""})
        assert element.has_attribute("x")
        assert element.get_attribute("x") == ""
        assert element.get_attribute("y", "default") == "default"
        assert not element.has_attribute("y")

    def test_iter_document_order(self):
        """Test pre-order iteration."""
        forest = build_text("<a><b><c></c></b><d></d></a>")
        assert [e.tag for e in forest.roots[0].iter()] == ["a", "b", "c", "d"]

    def test_to_outline(self):
        """Test the BEGIN/END outline rendering."""
        forest = build_text('<tag1 v="1"><tag2 name="x"></tag2></tag1>')
        assert forest.to_outline() == "\n".join([
            '[BEGIN tag1 ATTR(v="1")]',
            '[BEGIN tag2 ATTR(name="x")]',
            "[END tag2]",
            "[END tag1]",
        ])


class TestTreeBuilder:
    """Test nesting reconstruction."""

    def test_nested_structure(self):
        """Test parent/child relationships and attributes."""
        forest = build_text(
            '<tag1 value="HelloWorld"><tag2 name="Name1"></tag2></tag1>'
        )
        assert len(forest) == 1
        root = forest.roots[0]
        assert root.tag == "tag1"
        assert root.attributes == {"value": "HelloWorld"}
        assert [child.tag for child in root.children] == ["tag2"]
        assert root.children[0].attributes == {"name": "Name1"}

    def test_multiple_roots_in_order(self):
        """Test that top-level siblings become ordered roots."""
        forest = build_text("<a></a><b></b><a></a>")
        assert [root.tag for root in forest] == ["a", "b", "a"]

    def test_attribute_order_preserved(self):
        """Test that attributes keep document order."""
        forest = build_text('<a z="1" y="2" x="3"></a>')
        assert list(forest.roots[0].attributes) == ["z", "y", "x"]

    def test_duplicate_attribute_last_wins(self):
        """Test that a repeated attribute name keeps the last value."""
        forest = build_text('<a x="1" x="2"></a>')
        assert forest.roots[0].attributes == {"x": "2"}

    def test_empty_value_kept(self):
        """Test that empty values are real values."""
        forest = build_text('<a help=""></a>')
        assert forest.roots[0].attributes == {"help": ""}

    def test_accepts_tokenization_result(self):
        """Test building straight from a TokenizationResult."""
        result = HRMLTokenizer().tokenize("<a><b></b></a>")
        forest = HRMLTreeBuilder().build(result)
        assert forest.total_elements == 2

    def test_start_position_recorded(self):
        """Test that elements remember where their name started."""
        forest = build_text("<a>\n<b></b></a>")
        child = forest.roots[0].children[0]
        assert child.start_position.line == 2
        assert child.start_position.column == 2

    def test_module_level_build(self):
        """Test the default-configured helper."""
        assert build(tokenize("<a></a>")).roots[0].tag == "a"

    def test_empty_token_stream(self):
        """Test that no tokens yield an empty forest."""
        forest = build([])
        assert forest.roots == []
        assert forest.max_depth == 0


class TestStructuralErrors:
    """Test structural validation."""

    def test_unmatched_closer(self):
        """Test a closer with nothing open."""
        with pytest.raises(StructuralError, match=r"Closing tag </a> has no matching opening tag") as exc_info:
            build_text("</a>")
        assert exc_info.value.tag == "a"

    def test_mismatched_closer_lenient(self):
        """Test that the default mode closes the innermost element."""
        forest = build_text("<a><b></x></a>")
        assert forest.roots[0].children[0].tag == "b"
        assert forest.unclosed_tags == []

    def test_mismatched_closer_validated(self):
        """Test closing-name validation."""
        config = TreeConfig(validate_closing_names=True)
        with pytest.raises(StructuralError, match=r"</x> does not match open tag <b>"):
            build_text("<a><b></x></a>", config)

    def test_opening_tag_without_name(self):
        """Test a record that has no tag name."""
        tokens = [Token(TokenType.OPEN_TAG), Token(TokenType.CLOSE_TAG)]
        with pytest.raises(StructuralError, match="Opening tag without a name"):
            build(tokens)

    def test_max_depth(self):
        """Test the nesting depth limit."""
        config = TreeConfig(max_depth=2)
        assert build_text("<a><b></b></a>", config).max_depth == 2
        with pytest.raises(StructuralError, match="Nesting depth exceeds 2"):
            build_text("<a><b><c></c></b></a>", config)

    def test_unclosed_tags_lenient(self):
        """Test that unclosed tags are kept and logged."""
        builder = HRMLTreeBuilder()
        with patch.object(builder.logger, "warning") as warning:
            forest = builder.build(tokenize("<a><b></b>"))
        assert forest.roots[0].tag == "a"
        assert forest.unclosed_tags == ["a"]
        warning.assert_called_once()

    def test_unclosed_tags_rejected(self):
        """Test strict handling of unclosed tags."""
        config = TreeConfig(reject_unclosed=True)
        with pytest.raises(StructuralError, match=r"Tag <b> is never closed"):
            build_text("<a><b>", config)


class TestHRMLForest:
    """Test forest statistics and serialization."""

    def test_statistics(self):
        """Test element, attribute and depth counts."""
        forest = build_text('<a x="1"><b y="2" z="3"><c></c></b></a><d></d>')
        assert forest.total_elements == 4
        assert forest.total_attributes == 3
        assert forest.max_depth == 3
        assert [e.tag for e in forest.iter_elements()] == ["a", "b", "c", "d"]

    def test_element_count_matches_opening_tags(self):
        """Test one element per TAG_NAME token."""
        text = '<r><a v="1"></a><b></b><a v="2"><c></c></a></r><s></s>'
        tokens = tokenize(text)
        opening = sum(1 for token in tokens if token.type is TokenType.TAG_NAME)
        assert build(tokens).total_elements == opening == 6

    def test_find_root(self):
        """Test first-match root lookup."""
        forest = build_text('<a n="1"></a><a n="2"></a>')
        assert forest.find_root("a").attributes["n"] == "1"
        assert forest.find_root("b") is None

    def test_to_json(self):
        """Test JSON serialization of the forest."""
        forest = build_text('<a x="1"><b></b></a>')
        data = json.loads(forest.to_json())
        assert data["total_elements"] == 2
        assert data["roots"] == [
            {"tag": "a", "attributes": {"x": "1"},
             "children": [{"tag": "b", "attributes": {}}]}
        ]
        assert "unclosed_tags" not in data

    def test_unclosed_in_dict(self):
        """Test that unclosed tags appear in the dictionary form."""
        assert HRMLForest(unclosed_tags=["a"]).to_dict()["unclosed_tags"] == ["a"]


class TestDeepNesting:
    """Test documents nested far beyond the interpreter recursion limit."""

    DEPTH = 2000

    @pytest.fixture
    def deep_forest(self):
        """Forest of DEPTH elements, each the only child of the previous one."""
        text = "".join(f'<t{i} v="{i}">' for i in range(self.DEPTH))
        text += "".join(f"</t{i}>" for i in reversed(range(self.DEPTH)))
        return build_text(text)

    def test_statistics(self, deep_forest):
        """Test element, attribute and depth counts."""
        assert deep_forest.total_elements == self.DEPTH
        assert deep_forest.total_attributes == self.DEPTH
        assert deep_forest.max_depth == self.DEPTH
        assert deep_forest.unclosed_tags == []

    def test_iteration_order(self, deep_forest):
        """Test that pre-order iteration reaches the innermost element."""
        tags = [element.tag for element in deep_forest.iter_elements()]
        assert tags == [f"t{i}" for i in range(self.DEPTH)]

    def test_outline(self, deep_forest):
        """Test the outline of a deep tree."""
        lines = deep_forest.to_outline().splitlines()
        assert len(lines) == 2 * self.DEPTH
        assert lines[0] == '[BEGIN t0 ATTR(v="0")]'
        assert lines[self.DEPTH - 1] == f'[BEGIN t{self.DEPTH - 1} ATTR(v="{self.DEPTH - 1}")]'
        assert lines[self.DEPTH] == f"[END t{self.DEPTH - 1}]"
        assert lines[-1] == "[END t0]"

    def test_to_dict(self, deep_forest):
        """Test dictionary conversion of a deep tree."""
        node = deep_forest.to_dict()["roots"][0]
        depth = 1
        while "children" in node:
            node = node["children"][0]
            depth += 1
        assert depth == self.DEPTH
        assert node == {"tag": f"t{self.DEPTH - 1}", "attributes": {"v": str(self.DEPTH - 1)}}

    def test_repr_does_not_walk_children(self, deep_forest):
        """Test that element repr stays shallow."""
        assert "t1" not in repr(deep_forest.roots[0])
