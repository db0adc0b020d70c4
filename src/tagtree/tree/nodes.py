"""Immutable node model for parsed markup trees.

A ``Node`` carries an ordered tuple of children and exactly one payload,
either ``ElementData`` (a tag name) or ``TextData`` (trimmed text). Nodes are
frozen once built and hold no parent references, so a tree is owned outright
by whoever holds its root sequence.
"""

import itertools
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class ElementData:
    """Payload of an element node: the bare tag name, without brackets."""

    tag_name: str


@dataclass(frozen=True)
class TextData:
    """Payload of a text node: content trimmed at both edges."""

    content: str


NodePayload = Union[ElementData, TextData]


@dataclass(frozen=True, eq=False, repr=False)
class Node:
    """Single tree entity, an element or a text leaf.

    Equality is structural: two nodes are equal when their payloads and their
    children are equal, which is what round-trip comparisons rely on. Equality,
    hashing and repr all run without recursion, so deep trees are safe to
    compare and print; repr shows one level only.
    """

    data: NodePayload
    children: Tuple["Node", ...] = ()

    def __post_init__(self) -> None:
        """Validate payload and normalize children to a tuple."""
        if not isinstance(self.data, (ElementData, TextData)):
            raise TypeError("Node data must be ElementData or TextData")
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if isinstance(self.data, TextData) and self.children:
            raise ValueError("Text nodes cannot have children")
        for child in self.children:
            if not isinstance(child, Node):
                raise TypeError("Children must be Node instances")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        pairs = [(self, other)]
        while pairs:
            left, right = pairs.pop()
            if left is right:
                continue
            if left.data != right.data or len(left.children) != len(right.children):
                return False
            pairs.extend(zip(left.children, right.children))
        return True

    def __hash__(self) -> int:
        # Preorder payloads with child counts fix the shape
        return hash(tuple(
            (node.data, len(node.children))
            for node in itertools.chain((self,), self.iter_descendants())
        ))

    def __repr__(self) -> str:
        if self.children:
            return f"Node({self.data!r}, children={len(self.children)})"
        return f"Node({self.data!r})"

    @classmethod
    def element(cls, tag_name: str, children: Sequence["Node"] = ()) -> "Node":
        """Build an element node."""
        return cls(ElementData(tag_name), tuple(children))

    @classmethod
    def text_node(cls, content: str) -> "Node":
        """Build a text node."""
        return cls(TextData(content))

    @property
    def is_element(self) -> bool:
        return isinstance(self.data, ElementData)

    @property
    def is_text(self) -> bool:
        return isinstance(self.data, TextData)

    @property
    def tag_name(self) -> Optional[str]:
        """Tag name for elements, None for text."""
        if isinstance(self.data, ElementData):
            return self.data.tag_name
        return None

    @property
    def text(self) -> Optional[str]:
        """Content for text nodes, None for elements."""
        if isinstance(self.data, TextData):
            return self.data.content
        return None

    @property
    def text_content(self) -> str:
        """All non-empty text in this subtree, joined by single spaces."""
        if isinstance(self.data, TextData):
            return self.data.content
        return " ".join(
            node.data.content
            for node in self.iter_descendants()
            if isinstance(node.data, TextData) and node.data.content
        )

    def iter_descendants(self) -> Iterator["Node"]:
        """Yield every node below this one in document order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, tag_name: str) -> Optional["Node"]:
        """Find the first descendant element with a matching tag name."""
        return next(
            (node for node in self.iter_descendants() if node.tag_name == tag_name),
            None,
        )

    def find_all(self, tag_name: str) -> List["Node"]:
        """Find all descendant elements with a matching tag name."""
        return [node for node in self.iter_descendants() if node.tag_name == tag_name]

    def to_dict(self) -> Dict[str, Any]:
        """Convert this subtree to plain dictionaries.

        Elements become ``{"element": name, "children": [...]}`` and text
        becomes ``{"text": content}``.
        """
        return _node_to_dict(self)


def _node_to_dict(root: Node) -> Dict[str, Any]:
    # Explicit stack so very deep trees do not hit the recursion limit
    def shell(node: Node) -> Dict[str, Any]:
        if node.is_text:
            return {"text": node.text}
        return {"element": node.tag_name, "children": []}

    result = shell(root)
    stack = [(root, result)]
    while stack:
        node, target = stack.pop()
        for child in node.children:
            child_dict = shell(child)
            target["children"].append(child_dict)
            if child.children:
                stack.append((child, child_dict))
    return result


def node_depth(root: Node) -> int:
    """Depth of the deepest element in ``root`` (a lone element is depth 1)."""
    if root.is_text:
        return 0
    deepest = 1
    stack = [(root, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        for child in node.children:
            if child.is_element:
                stack.append((child, depth + 1))
    return deepest


@dataclass
class Document:
    """Root sibling sequence of a parsed document with summary statistics.

    The document root has no enclosing element: ``nodes`` is a forest.
    """

    nodes: Tuple[Node, ...] = ()
    total_elements: int = 0
    total_text_nodes: int = 0
    max_depth: int = 0
    source_length: int = 0
    ignored_trailing_input: Optional[str] = None
    encoding: Optional[str] = None
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Normalize nodes and calculate document statistics."""
        if not isinstance(self.nodes, tuple):
            self.nodes = tuple(self.nodes)
        self._calculate_statistics()

    def _calculate_statistics(self) -> None:
        elements = 0
        texts = 0
        for node in self.iter_nodes():
            if node.is_element:
                elements += 1
            else:
                texts += 1
        self.total_elements = elements
        self.total_text_nodes = texts
        self.max_depth = max((node_depth(node) for node in self.nodes), default=0)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def node_count(self) -> int:
        return self.total_elements + self.total_text_nodes

    def iter_nodes(self) -> Iterator[Node]:
        """Iterate over all nodes in document order."""
        for node in self.nodes:
            yield node
            yield from node.iter_descendants()

    def iter_elements(self) -> Iterator[Node]:
        """Iterate over element nodes in document order."""
        return (node for node in self.iter_nodes() if node.is_element)

    def find(self, tag_name: str) -> Optional[Node]:
        """Find the first element with a matching tag name."""
        return next(
            (node for node in self.iter_nodes() if node.tag_name == tag_name), None
        )

    def find_all(self, tag_name: str) -> List[Node]:
        """Find all elements with a matching tag name."""
        return [node for node in self.iter_nodes() if node.tag_name == tag_name]

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        result: Dict[str, Any] = {
            "total_elements": self.total_elements,
            "total_text_nodes": self.total_text_nodes,
            "max_depth": self.max_depth,
            "nodes": [node.to_dict() for node in self.nodes],
        }
        if self.encoding:
            result["encoding"] = self.encoding
        if self.ignored_trailing_input is not None:
            result["ignored_trailing_input"] = self.ignored_trailing_input
        return result
