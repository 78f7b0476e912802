"""
Declaration Locator Module
Recognizes calls to the style-authoring function and extracts their callback.
"""

from dataclasses import dataclass
from typing import Optional

from .syntax_tree import SyntaxNode

DEFAULT_CALLEE = 'craftingStyles'


@dataclass
class StyleCallSite:
    call: SyntaxNode
    callback: SyntaxNode

    @property
    def body(self) -> SyntaxNode:
        return self.callback.get('body')

    def replace_body(self, body: SyntaxNode) -> None:
        self.callback.set('body', body)


def locate_style_callback(node: SyntaxNode, callee_name: str = DEFAULT_CALLEE) -> Optional[StyleCallSite]:
    """
    Return the call site when *node* is ``callee_name(<inline function>, ...)``.

    Any other shape, including a missing argument or a callback passed by
    reference, yields None.
    """
    if not node.is_call():
        return None
    callee = node.get('callee')
    if callee is None or not callee.is_identifier(callee_name):
        return None
    arguments = node.get('arguments')
    if not arguments:
        return None
    callback = arguments[0]
    if not callback.is_function() or callback.get('body') is None:
        return None
    return StyleCallSite(call=node, callback=callback)
