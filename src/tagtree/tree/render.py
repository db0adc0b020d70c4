"""Rendering of parsed trees to text.

Serialization lives here rather than in the builder: the builder produces
trees, this module turns finished trees into canonical markup, indented
markup, JSON or a debugging outline. Canonical and indented markup both parse
back to a tree equal to the one rendered.
"""

import json
import time
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from tagtree.shared import OutputConfig, get_logger

from .nodes import Document, Node

Renderable = Union[Document, Node, Sequence[Node]]

# Walk events
_OPEN = "open"
_CLOSE = "close"
_TEXT = "text"


class OutputFormat(Enum):
    """Supported output formats for tree serialization."""

    MARKUP = "markup"
    PRETTY = "pretty"
    JSON = "json"
    OUTLINE = "outline"


def _as_nodes(tree: Renderable) -> Tuple[Node, ...]:
    if isinstance(tree, Document):
        return tree.nodes
    if isinstance(tree, Node):
        return (tree,)
    return tuple(tree)


def _walk(nodes: Sequence[Node]) -> Iterator[Tuple[str, Node, int]]:
    """Yield ``(event, node, depth)`` in document order without recursion."""
    stack: List[Tuple[str, Node, int]] = [
        (_TEXT if node.is_text else _OPEN, node, 0) for node in reversed(nodes)
    ]
    while stack:
        event, node, depth = stack.pop()
        yield event, node, depth
        if event == _OPEN:
            stack.append((_CLOSE, node, depth))
            for child in reversed(node.children):
                stack.append((_TEXT if child.is_text else _OPEN, child, depth + 1))


class TreeRenderer:
    """Formats trees in any ``OutputFormat``.

    Examples:
        >>> from tagtree.tree.nodes import Node
        >>> tree = Node.element("a", [Node.text_node("hi")])
        >>> TreeRenderer().render(tree)
        '<a>hi</a>'
    """

    def __init__(
        self,
        config: Optional[OutputConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or OutputConfig()
        self.logger = get_logger(__name__, correlation_id, "tree_renderer")

    def render(
        self,
        tree: Renderable,
        output_format: Union[OutputFormat, str, None] = None
    ) -> str:
        """Render ``tree`` in the requested format.

        Args:
            tree: A Document, a single Node, or a sibling sequence
            output_format: Format to use; defaults to the configured one

        Returns:
            Rendered text
        """
        if output_format is None:
            output_format = self.config.default_format
        if isinstance(output_format, str):
            output_format = OutputFormat(output_format)

        start_time = time.time()
        nodes = _as_nodes(tree)

        if output_format is OutputFormat.MARKUP:
            output = self._render_markup(nodes)
        elif output_format is OutputFormat.PRETTY:
            output = self._render_pretty(nodes)
        elif output_format is OutputFormat.JSON:
            output = self._render_json(nodes)
        else:
            output = self._render_outline(nodes)

        self.logger.debug(
            "Tree rendered",
            extra={
                "output_format": output_format.value,
                "root_nodes": len(nodes),
                "output_length": len(output),
                "processing_time_ms": (time.time() - start_time) * 1000,
            }
        )
        return output

    def _render_markup(self, nodes: Sequence[Node]) -> str:
        parts = []
        for event, node, _ in _walk(nodes):
            if event == _OPEN:
                parts.append(f"<{node.tag_name}>")
            elif event == _CLOSE:
                parts.append(f"</{node.tag_name}>")
            else:
                parts.append(node.text or "")
        return "".join(parts)

    def _render_pretty(self, nodes: Sequence[Node]) -> str:
        indent = self.config.indent
        lines = []
        stack: List[Tuple[Node, int, bool]] = [
            (node, 0, False) for node in reversed(nodes)
        ]
        while stack:
            node, depth, closing = stack.pop()
            prefix = indent * depth
            if closing:
                lines.append(f"{prefix}</{node.tag_name}>")
                continue
            if node.is_text:
                if node.text:
                    lines.append(f"{prefix}{node.text}")
                continue

            children = node.children
            if not children:
                lines.append(f"{prefix}<{node.tag_name}></{node.tag_name}>")
            elif len(children) == 1 and children[0].is_text:
                # A lone text child stays on its element's line
                lines.append(
                    f"{prefix}<{node.tag_name}>{children[0].text}</{node.tag_name}>"
                )
            else:
                lines.append(f"{prefix}<{node.tag_name}>")
                stack.append((node, depth, True))
                for child in reversed(children):
                    stack.append((child, depth + 1, False))
        return "\n".join(lines)

    def _render_json(self, nodes: Sequence[Node]) -> str:
        """Write ``Node.to_dict`` shaped JSON without recursing per level.

        Output is identical to ``json.dumps`` with the configured indent;
        only scalar strings go through the ``json`` module.
        """
        indent = self.config.json_indent
        item_separator = ", " if indent is None else ","

        def line_break(level: int) -> str:
            if indent is None:
                return ""
            return "\n" + " " * (indent * level)

        def dump(value: Optional[str]) -> str:
            return json.dumps(value, ensure_ascii=False)

        # Pending output: literal strings, or (node, level) still to expand
        stack: List[Union[str, Tuple[Node, int]]] = []

        def push_list(children: Sequence[Node], level: int) -> None:
            if not children:
                stack.append("[]")
                return
            stack.append(line_break(level) + "]")
            for i in range(len(children) - 1, -1, -1):
                stack.append((children[i], level + 1))
                stack.append(("[" if i == 0 else item_separator) + line_break(level + 1))

        push_list(nodes, 0)
        parts = []
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
                continue
            node, level = item
            inner = line_break(level + 1)
            if node.is_text:
                parts.append(f'{{{inner}"text": {dump(node.text)}{line_break(level)}}}')
                continue
            stack.append(line_break(level) + "}")
            push_list(node.children, level + 1)
            stack.append(
                f'{{{inner}"element": {dump(node.tag_name)}{item_separator}{inner}"children": '
            )
        return "".join(parts)

    def _render_outline(self, nodes: Sequence[Node]) -> str:
        indent = self.config.indent
        lines = []
        for event, node, depth in _walk(nodes):
            if event == _OPEN:
                lines.append(
                    f"{indent * depth}Element({node.tag_name!r}, "
                    f"children={len(node.children)})"
                )
            elif event == _TEXT:
                lines.append(f"{indent * depth}Text({node.text!r})")
        return "\n".join(lines)


def to_markup(tree: Renderable) -> str:
    """Render ``tree`` as canonical markup with no added whitespace."""
    return TreeRenderer().render(tree, OutputFormat.MARKUP)


def to_pretty(tree: Renderable, indent: str = "  ") -> str:
    """Render ``tree`` as indented markup, one node per line."""
    return TreeRenderer(OutputConfig(indent=indent)).render(tree, OutputFormat.PRETTY)
