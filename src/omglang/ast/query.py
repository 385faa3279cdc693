"""Read-only position and type queries over OMG syntax trees."""

from __future__ import annotations

from omglang.ast.nodes import ASTNode, NodeType


def find_node_at(root: ASTNode, line: int, column: int) -> ASTNode | None:
    """Return the deepest node whose span covers ``(line, column)``.

    Children are searched before the node itself and the first covering
    child wins.  Returns None when not even *root* covers the position.
    """
    path = find_path_at(root, line, column)
    return path[-1] if path else None


def find_path_at(root: ASTNode, line: int, column: int) -> list[ASTNode]:
    """Return the chain of covering nodes from *root* down to the deepest one."""
    if not root.span.covers(line, column):
        return []
    path = [root]
    node = root
    while True:
        for child in node.children:
            if child.span.covers(line, column):
                node = child
                path.append(child)
                break
        else:
            return path


def find_nodes_of_type(root: ASTNode, node_type: NodeType | str) -> list[ASTNode]:
    """All nodes of *node_type* in pre-order, *root* included."""
    found: list[ASTNode] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == node_type:
            found.append(node)
        stack.extend(reversed(node.children))
    return found


def has_ancestor_of_type(path: list[ASTNode], node_type: NodeType | str) -> bool:
    """True when any node above the last element of *path* has *node_type*."""
    return any(node.type == node_type for node in path[:-1])


def get_node_text(node: ASTNode, text: str) -> str:
    """Return the slice of *text* covered by *node*."""
    start = _offset_of(text, node.span.line, node.span.column)
    return text[start : start + node.span.length]


def _offset_of(text: str, line: int, column: int) -> int:
    offset = 0
    for _ in range(line - 1):
        newline = text.find("\n", offset)
        if newline < 0:
            return len(text)
        offset = newline + 1
    return min(offset + column - 1, len(text))
