"""
Defines the parse tree node structure for the CALC language.

Classes:
    ParseNode:
        One node per grammar rule that was applied. Children are either literal
        token text (keywords, operators, punctuation, names, digits) or nested nodes.

    NodeDict:
        TypedDict representation for serializing ParseNode instances to plain Python
        dictionaries, suitable for JSON output or debugging.

Each ParseNode tracks:
    tag (str): The grammar rule that produced it ("program", "stmt", "expr", ...).
    children (tuple[str | ParseNode, ...]): The derived symbols, in source order.

Nodes are immutable once constructed and never refer back to their parent.

Example:
    >>> node = ParseNode("id", ["x"])
    >>> str(node)
    "id('x')"
"""

from typing import Any, Callable, Iterable, TypedDict, Union

TAGS: frozenset[str] = frozenset(
    {"program", "stmt_list", "stmt", "expr", "etail", "id", "num", "numsign", "compare"}
)


class NodeDict(TypedDict):
    """
    TypedDict representation of a ParseNode used for serialization.

    Fields:
        tag (str): The grammar rule of the node.
        children (list[str | NodeDict]): Terminal text or nested node dictionaries.
    """

    tag: str
    children: list[Union[str, "NodeDict"]]


Child = Union[str, "ParseNode"]


class _Raw(str):
    """Output fragment emitted verbatim by `ParseNode.__str__`."""


class ParseNode:
    """
    A node in the CALC parse tree.

    Args:
        tag (str): Grammar rule name, one of `TAGS`.
        children (Iterable[str | ParseNode], optional): Derived symbols in order.

    Raises:
        ValueError: If `tag` is not a known grammar rule.
        TypeError: If a child is neither a string nor a ParseNode.
    """

    __slots__ = ("_tag", "_children")

    def __init__(self, tag: str, children: Iterable[Child] = ()) -> None:
        if tag not in TAGS:
            raise ValueError(f"Unknown parse tree tag: {tag!r}")
        children = tuple(children)
        for child in children:
            if not isinstance(child, (str, ParseNode)):
                raise TypeError(
                    f"ParseNode children must be str or ParseNode, got {type(child).__name__}"
                )
        object.__setattr__(self, "_tag", tag)
        object.__setattr__(self, "_children", children)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ParseNode is immutable")

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def children(self) -> tuple[Child, ...]:
        return self._children

    @property
    def is_empty(self) -> bool:
        """True for an ε derivation (no children)."""
        return not self._children

    def nodes(self, tag: str | None = None) -> list["ParseNode"]:
        """Returns this node and all descendant nodes in pre-order, optionally filtered by tag."""
        found: list[ParseNode] = []
        stack: list[ParseNode] = [self]
        while stack:
            node = stack.pop()
            if tag is None or node.tag == tag:
                found.append(node)
            stack.extend(
                reversed([c for c in node.children if isinstance(c, ParseNode)])
            )
        return found

    def __str__(self) -> str:
        # Walks with an explicit stack; stmt_list chains nest once per statement.
        out: list[str] = []
        stack: list[Any] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, ParseNode):
                out.append(f"{item.tag}(")
                stack.append(_Raw(")"))
                for i, child in reversed(list(enumerate(item.children))):
                    stack.append(child)
                    if i:
                        stack.append(_Raw(", "))
            elif isinstance(item, _Raw):
                out.append(item)
            else:
                out.append(repr(item))
        return "".join(out)

    def __repr__(self) -> str:
        return f"ParseNode({self._tag!r}, {list(self._children)!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ParseNode):
            return False
        pairs: list[tuple[ParseNode, ParseNode]] = [(self, other)]
        while pairs:
            a, b = pairs.pop()
            if a is b:
                continue
            if a._tag != b._tag or len(a._children) != len(b._children):
                return False
            for x, y in zip(a._children, b._children):
                if isinstance(x, ParseNode) and isinstance(y, ParseNode):
                    pairs.append((x, y))
                elif isinstance(x, ParseNode) or isinstance(y, ParseNode) or x != y:
                    return False
        return True

    def __hash__(self) -> int:
        # Equal trees render identically.
        return hash(("ParseNode", str(self)))

    def _convert(self, build: Callable[["ParseNode", list[Any]], Any]) -> Any:
        """Post-order conversion with an explicit stack; `build` gets the converted children."""
        done: dict[int, Any] = {}
        stack: list[tuple[ParseNode, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                done[id(node)] = build(
                    node,
                    [done[id(c)] if isinstance(c, ParseNode) else c for c in node.children],
                )
            elif id(node) not in done:
                stack.append((node, True))
                stack.extend(
                    (c, False) for c in node.children if isinstance(c, ParseNode)
                )
        return done[id(self)]

    def to_tuple(self) -> tuple[Any, ...]:
        """Converts the tree to nested tagged tuples: `(tag, *children)`."""
        return self._convert(lambda node, children: (node.tag, *children))

    def to_dict(self) -> NodeDict:
        return self._convert(lambda node, children: {"tag": node.tag, "children": children})


__all__ = ["NodeDict", "ParseNode", "TAGS"]
