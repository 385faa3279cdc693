"""Visitor pattern for OMG syntax tree traversal."""

from __future__ import annotations

from typing import Any

from omglang.ast.nodes import ASTNode, NodeType


class ASTVisitor:
    """Base visitor for OMG syntax trees.

    Override ``visit_<node type>`` methods (e.g. ``visit_rule_def``) to
    customize behavior.  The default implementation walks the children in
    order.  While a node's children are visited the node sits on
    :attr:`ancestors`, so handlers can inspect their context without parent
    links on the nodes themselves.
    """

    def __init__(self) -> None:
        self.ancestors: list[ASTNode] = []

    @property
    def parent(self) -> ASTNode | None:
        return self.ancestors[-1] if self.ancestors else None

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit_* method."""
        method = getattr(self, f"visit_{node.type.value}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: ASTNode) -> Any:
        self.visit_children(node, node.children)
        return None

    def visit_children(self, node: ASTNode, children: tuple[ASTNode, ...]) -> None:
        """Visit *children* (a subset of node.children) with *node* as ancestor."""
        self.ancestors.append(node)
        try:
            for child in children:
                self.visit(child)
        finally:
            self.ancestors.pop()

    def inside(self, node_type: NodeType) -> bool:
        """True when an ancestor of the current node has *node_type*."""
        return any(a.type == node_type for a in self.ancestors)
