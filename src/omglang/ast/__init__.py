"""OMG syntax tree: node model, traversal and position queries."""

from omglang.ast.nodes import ASTNode, NodeType, Position
from omglang.ast.query import (
    find_node_at,
    find_nodes_of_type,
    find_path_at,
    get_node_text,
    has_ancestor_of_type,
)
from omglang.ast.visitor import ASTVisitor

__all__ = [
    "ASTNode",
    "ASTVisitor",
    "NodeType",
    "Position",
    "find_node_at",
    "find_nodes_of_type",
    "find_path_at",
    "get_node_text",
    "has_ancestor_of_type",
]
