"""
Tree Walker Module
Stack-based traversal over SyntaxNode trees.
"""

from typing import Callable, Iterator

from .syntax_tree import SCALAR, SEQUENCE, SLOT_LAYOUT, NodeKind, SyntaxNode


def iter_tree(root: SyntaxNode) -> Iterator[SyntaxNode]:
    """
    Yield every node reachable from *root* exactly once.

    Children are read only after the consumer resumes the generator, so a
    node may be mutated (for example a callback body swapped) before its
    subtree is explored. Properties of object literals are never yielded:
    they are interpreted as a whole by the property transformer.
    """
    stack = [root]
    seen = {}
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen[id(node)] = node
        yield node

        pending = []
        for name, arity in SLOT_LAYOUT[node.kind]:
            if arity is SCALAR:
                continue
            value = node.slots.get(name)
            if arity is SEQUENCE:
                if node.kind is NodeKind.OBJECT_LITERAL:
                    continue
                pending.extend(child for child in value or () if child is not None)
            elif value is not None:
                pending.append(value)
        # reversed so siblings come off the stack in source order
        stack.extend(reversed(pending))


def walk_tree(root: SyntaxNode, visit: Callable[[SyntaxNode], object]) -> int:
    """Call *visit* on every node of the tree; returns the number of nodes visited."""
    count = 0
    for node in iter_tree(root):
        visit(node)
        count += 1
    return count
