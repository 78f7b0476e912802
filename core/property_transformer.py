"""
Property Transformer Module
Rewrites the values of a style object literal into engine-generated tokens.
"""

import json
import logging
from typing import List, Optional, Tuple

from .style_engine import StyleEngine
from .syntax_tree import NodeKind, SyntaxNode

logger = logging.getLogger(__name__)


def json_quote(value: str) -> str:
    """Quote a declared value the way the engine expects it: double quotes become single, then JSON."""
    return json.dumps(value.replace('"', "'"), ensure_ascii=False)


def property_name(prop: SyntaxNode) -> Optional[str]:
    """Identifier key of an object member, or None for anything else."""
    if prop.kind is not NodeKind.PROPERTY:
        return None
    key = prop.get('key')
    if key is None or not key.is_identifier():
        return None
    return key.get('name')


class PropertyTransformer:
    """Applies a StyleEngine to every declaration of a style object."""

    def __init__(self, engine: StyleEngine):
        self.engine = engine

    def transform_object(self, node: SyntaxNode, module_scoped: bool, file_path: str,
                         pseudo_group: str = '') -> int:
        """
        Transform *node* in place and return the number of values replaced.

        Nested object literals are pseudo-groups: their key becomes the group
        for everything declared inside them, at any depth. A failure on one
        property is logged and the remaining properties are still processed.
        """
        if not node.is_object_literal():
            return 0

        replaced = 0
        pending: List[Tuple[SyntaxNode, str]] = [(node, pseudo_group)]
        while pending:
            obj, group = pending.pop()
            for prop in obj.get('properties'):
                name = property_name(prop)
                if name is None:
                    continue
                value = prop.get('value')
                try:
                    if value.is_string_literal():
                        replaced += self._apply(name, value, module_scoped, file_path, group)
                    elif value.is_object_literal():
                        pending.append((value, name))
                    elif value.is_template():
                        replaced += self._transform_template(name, value, module_scoped, file_path, group)
                except Exception as e:
                    line, column = prop.location
                    logger.error(f"Failed to transform '{name}' at {file_path or '<source>'}:{line}:{column}: {str(e)}",
                                 exc_info=True)
        return replaced

    def _apply(self, name: str, literal: SyntaxNode, module_scoped: bool, file_path: str, group: str) -> int:
        token = self.engine.transform(name, json_quote(literal.get('value')), module_scoped, file_path or '', group)
        if not token:
            logger.debug(f"Engine declined '{name}' in group '{group}'")
            return 0
        literal.set_literal_value(token)
        return 1

    def _transform_template(self, name: str, template: SyntaxNode, module_scoped: bool, file_path: str,
                            group: str) -> int:
        expressions = template.get('expressions')
        quasis = template.get('quasis')

        if not expressions:
            if len(quasis) != 1:
                return 0
            return self._apply(name, quasis[0], module_scoped, file_path, group)

        # Only `${cond ? "a" : "b"}` is a conditional declaration; the
        # condition itself is never touched.
        condition = expressions[0]
        if len(expressions) != 1 or condition.kind is not NodeKind.TERNARY:
            logger.debug(f"Skipping template value of '{name}': not a single conditional")
            return 0
        replaced = 0
        for branch in (condition.get('consequent'), condition.get('alternate')):
            if branch is not None and branch.is_string_literal():
                replaced += self._apply(name, branch, module_scoped, file_path, group)
        return replaced
