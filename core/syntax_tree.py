"""
Syntax Tree Module
Mutable, kind-tagged syntax nodes and source regeneration.

Every node keeps its own source as a list of fragments: verbatim text pieces
interleaved with references to child slots. Rendering a node concatenates the
fragments and substitutes the rendered children, so untouched code is emitted
exactly as it was read and a node can be moved between trees (or files)
without carrying byte offsets around.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


class NodeKind(Enum):
    PROGRAM = 'program'
    CALL = 'call'
    IDENTIFIER = 'identifier'
    FUNCTION = 'function'
    OBJECT_LITERAL = 'object_literal'
    PROPERTY = 'property'
    STRING_LITERAL = 'string_literal'
    TEMPLATE = 'template'
    TEMPLATE_ELEMENT = 'template_element'
    TERNARY = 'ternary'
    OTHER = 'other'


class SlotArity(Enum):
    SCALAR = 'scalar'
    SINGLE = 'single'
    SEQUENCE = 'sequence'


SCALAR = SlotArity.SCALAR
SINGLE = SlotArity.SINGLE
SEQUENCE = SlotArity.SEQUENCE

SLOT_LAYOUT: Dict[NodeKind, Tuple[Tuple[str, SlotArity], ...]] = {
    NodeKind.PROGRAM: (('children', SEQUENCE),),
    NodeKind.CALL: (('callee', SINGLE), ('arguments', SEQUENCE)),
    NodeKind.IDENTIFIER: (('name', SCALAR),),
    NodeKind.FUNCTION: (('is_arrow', SCALAR), ('parameters', SINGLE), ('body', SINGLE)),
    NodeKind.OBJECT_LITERAL: (('properties', SEQUENCE),),
    NodeKind.PROPERTY: (('key', SINGLE), ('value', SINGLE)),
    NodeKind.STRING_LITERAL: (('value', SCALAR), ('quote', SCALAR)),
    NodeKind.TEMPLATE: (('quasis', SEQUENCE), ('expressions', SEQUENCE)),
    NodeKind.TEMPLATE_ELEMENT: (('value', SCALAR),),
    NodeKind.TERNARY: (('condition', SINGLE), ('consequent', SINGLE), ('alternate', SINGLE)),
    NodeKind.OTHER: (('children', SEQUENCE),),
}

_missing_layouts = set(NodeKind) - set(SLOT_LAYOUT)
if _missing_layouts:
    raise RuntimeError(f"No slot layout for node kinds: {sorted(k.value for k in _missing_layouts)}")

# A fragment is verbatim text or a (slot name, sequence index) reference.
SlotRef = Tuple[str, Optional[int]]
Fragment = Union[str, SlotRef]

_STRING_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0'}
_HEX_DIGITS = set('0123456789abcdefABCDEF')


def _read_hex(digits: str) -> Optional[int]:
    if digits and all(c in _HEX_DIGITS for c in digits):
        return int(digits, 16)
    return None


def _code_point_escape(raw: str, i: int) -> Optional[Tuple[int, int]]:
    """Decode the \\xHH, \\uHHHH or \\u{H...} escape whose letter is at raw[i]; returns (code point, next index)."""
    if raw[i] == 'x':
        value = _read_hex(raw[i + 1:i + 3]) if len(raw) >= i + 3 else None
        return (value, i + 3) if value is not None else None
    if raw.startswith('{', i + 1):
        close = raw.find('}', i + 2)
        value = _read_hex(raw[i + 2:close]) if close != -1 else None
        if value is None or value > 0x10FFFF:
            return None
        return value, close + 1
    value = _read_hex(raw[i + 1:i + 5]) if len(raw) >= i + 5 else None
    return (value, i + 5) if value is not None else None


def unescape_literal(raw: str) -> str:
    """Resolve the backslash escapes of a JS string body, hex and unicode escapes included."""
    out = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch != '\\' or i + 1 >= len(raw):
            out.append(ch)
            i += 1
            continue
        nxt = raw[i + 1]
        if nxt in 'xu':
            decoded = _code_point_escape(raw, i + 1)
            if decoded is not None:
                code, i = decoded
                # a high surrogate followed by an escaped low surrogate is one character
                if 0xD800 <= code < 0xDC00 and raw.startswith('\\u', i):
                    low = _code_point_escape(raw, i + 1)
                    if low is not None and 0xDC00 <= low[0] < 0xE000:
                        code = 0x10000 + ((code - 0xD800) << 10) + (low[0] - 0xDC00)
                        i = low[1]
                out.append(chr(code))
                continue
            out.append(nxt)
        elif nxt == '\r':
            # line continuation, CRLF included
            if raw.startswith('\n', i + 2):
                i += 1
        elif nxt not in '\n\u2028\u2029':
            out.append(_STRING_ESCAPES.get(nxt, nxt))
        i += 2
    return ''.join(out)


def escape_literal(value: str, quote: str) -> str:
    """Escape *value* so it can sit between *quote* characters."""
    escaped = value.replace('\\', '\\\\').replace('\n', '\\n').replace('\r', '\\r')
    if quote == '`':
        return escaped.replace('`', '\\`').replace('${', '\\${')
    return escaped.replace(quote, '\\' + quote)


@dataclass
class SyntaxNode:
    """A node of the transformable tree."""

    kind: NodeKind
    slots: Dict[str, Any] = field(default_factory=dict)
    fragments: List[Fragment] = field(default_factory=list)
    node_type: str = ''
    location: Tuple[int, int] = (0, 0)

    def get(self, name: str) -> Any:
        self._check_slot(name)
        return self.slots.get(name)

    def set(self, name: str, value: Any) -> None:
        self._check_slot(name)
        self.slots[name] = value

    def _check_slot(self, name: str) -> None:
        if all(slot != name for slot, _ in SLOT_LAYOUT[self.kind]):
            raise KeyError(f"{self.kind.value} nodes have no slot named {name!r}")

    def child_nodes(self, include_sequences: bool = True) -> Iterator['SyntaxNode']:
        """Yield direct child nodes in slot order."""
        for name, arity in SLOT_LAYOUT[self.kind]:
            value = self.slots.get(name)
            if arity is SINGLE and value is not None:
                yield value
            elif arity is SEQUENCE and include_sequences:
                for child in value or ():
                    if child is not None:
                        yield child

    # Kind predicates used by the locator and the transformer.
    def is_call(self) -> bool:
        return self.kind is NodeKind.CALL

    def is_identifier(self, name: Optional[str] = None) -> bool:
        if self.kind is not NodeKind.IDENTIFIER:
            return False
        return name is None or self.slots.get('name') == name

    def is_function(self) -> bool:
        return self.kind is NodeKind.FUNCTION

    def is_object_literal(self) -> bool:
        return self.kind is NodeKind.OBJECT_LITERAL

    def is_string_literal(self) -> bool:
        return self.kind is NodeKind.STRING_LITERAL

    def is_template(self) -> bool:
        return self.kind is NodeKind.TEMPLATE

    def set_literal_value(self, value: str) -> None:
        """Replace the value of a string literal or template segment in place."""
        if self.kind is NodeKind.STRING_LITERAL:
            quote = self.slots.get('quote') or '"'
            self.slots['value'] = value
            self.fragments = [quote + escape_literal(value, quote) + quote]
        elif self.kind is NodeKind.TEMPLATE_ELEMENT:
            self.slots['value'] = value
            self.fragments = [escape_literal(value, '`')]
        else:
            raise TypeError(f"Cannot set a literal value on a {self.kind.value} node")

    def resolve_fragment(self, ref: SlotRef) -> Optional['SyntaxNode']:
        name, index = ref
        value = self.slots.get(name)
        if index is None:
            return value
        if value is None or index >= len(value):
            return None
        return value[index]

    def clone(self) -> 'SyntaxNode':
        return copy.deepcopy(self)

    @property
    def text(self) -> str:
        return render(self)


def render(root: SyntaxNode) -> str:
    """Generate source code for *root* and everything below it."""
    out = []
    stack: List[Union[str, SyntaxNode]] = [root]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        pieces: List[Union[str, SyntaxNode]] = []
        for fragment in item.fragments:
            if isinstance(fragment, str):
                pieces.append(fragment)
            else:
                child = item.resolve_fragment(fragment)
                if child is not None:
                    pieces.append(child)
        stack.extend(reversed(pieces))
    return ''.join(out)
