"""
JS/TS Tree-sitter Parser Module
Parses JavaScript, TypeScript and their JSX flavours with tree-sitter and
converts the concrete tree into mutable SyntaxNode trees.
"""

import logging
import os
import threading
from collections import namedtuple
from pathlib import Path
from typing import Dict, List, Optional, Union

import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Parser

from .syntax_tree import SEQUENCE, SLOT_LAYOUT, NodeKind, SyntaxNode, render, unescape_literal

logger = logging.getLogger(__name__)

# Load the grammars shipped with the tree-sitter language packages
JS_LANGUAGE = Language(tsjavascript.language())
TS_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())

LANGUAGES: Dict[str, Language] = {
    'javascript': JS_LANGUAGE,
    'typescript': TS_LANGUAGE,
    'tsx': TSX_LANGUAGE,
}

LANGUAGE_BY_EXTENSION = {
    '.js': 'javascript',
    '.jsx': 'javascript',
    '.mjs': 'javascript',
    '.cjs': 'javascript',
    '.ts': 'typescript',
    '.mts': 'typescript',
    '.cts': 'typescript',
    '.tsx': 'tsx',
}

# 'function' is the pre-0.20.2 grammar name for function expressions
FUNCTION_TYPES = {'function_expression', 'function', 'arrow_function'}

_local = threading.local()

_Child = namedtuple('_Child', ['slot', 'index', 'start', 'end', 'ts_node', 'node'])


def language_for_path(file_path: Union[str, Path, None]) -> str:
    """Pick the grammar name for a file based on its extension."""
    if not file_path:
        return 'javascript'
    ext = os.path.splitext(str(file_path))[1].lower()
    return LANGUAGE_BY_EXTENSION.get(ext, 'javascript')


def _parser_for(language: str) -> Parser:
    # tree-sitter parsers are not safe to share between threads
    parsers = getattr(_local, 'parsers', None)
    if parsers is None:
        parsers = _local.parsers = {}
    if language not in parsers:
        parsers[language] = Parser(LANGUAGES[language])
    return parsers[language]


def _text(source: bytes, start: int, end: int) -> str:
    return source[start:end].decode('utf-8')


def _named(ts_node) -> list:
    return [child for child in ts_node.named_children if child.type != 'comment']


def _kind_for(ts_node) -> NodeKind:
    node_type = ts_node.type
    if node_type == 'program':
        return NodeKind.PROGRAM
    if node_type == 'call_expression':
        if ts_node.child_by_field_name('function') is not None and ts_node.child_by_field_name('arguments') is not None:
            return NodeKind.CALL
        return NodeKind.OTHER
    if node_type in ('identifier', 'property_identifier'):
        return NodeKind.IDENTIFIER
    if node_type in FUNCTION_TYPES and ts_node.child_by_field_name('body') is not None:
        return NodeKind.FUNCTION
    if node_type == 'object':
        return NodeKind.OBJECT_LITERAL
    if node_type == 'pair':
        if ts_node.child_by_field_name('key') is not None and ts_node.child_by_field_name('value') is not None:
            return NodeKind.PROPERTY
        return NodeKind.OTHER
    if node_type == 'string':
        return NodeKind.STRING_LITERAL
    if node_type == 'template_string':
        return NodeKind.TEMPLATE
    if node_type == 'ternary_expression':
        return NodeKind.TERNARY
    return NodeKind.OTHER


def _shell(ts_node, source: bytes) -> SyntaxNode:
    """Create a node with its kind and scalar slots; child slots come later."""
    kind = _kind_for(ts_node)
    node = SyntaxNode(
        kind=kind,
        node_type=ts_node.type,
        location=(ts_node.start_point[0] + 1, ts_node.start_point[1]),
    )
    raw = _text(source, ts_node.start_byte, ts_node.end_byte)
    if kind is NodeKind.IDENTIFIER:
        node.slots['name'] = raw
    elif kind is NodeKind.STRING_LITERAL:
        node.slots['quote'] = raw[:1]
        node.slots['value'] = unescape_literal(raw[1:-1])
    elif kind is NodeKind.FUNCTION:
        node.slots['is_arrow'] = ts_node.type == 'arrow_function'
    return node


def _template_element(source: bytes, start: int, end: int, location) -> SyntaxNode:
    raw = _text(source, start, end)
    return SyntaxNode(
        kind=NodeKind.TEMPLATE_ELEMENT,
        slots={'value': unescape_literal(raw)},
        fragments=[raw] if raw else [],
        node_type='template_chars',
        location=location,
    )


def _child(slot: str, index: Optional[int], ts_node, source: bytes) -> _Child:
    return _Child(slot, index, ts_node.start_byte, ts_node.end_byte, ts_node, _shell(ts_node, source))


def _children_of(node: SyntaxNode, ts_node, source: bytes) -> List[_Child]:
    kind = node.kind
    children: List[_Child] = []
    if kind in (NodeKind.IDENTIFIER, NodeKind.STRING_LITERAL):
        return children
    if kind is NodeKind.CALL:
        children.append(_child('callee', None, ts_node.child_by_field_name('function'), source))
        arguments = ts_node.child_by_field_name('arguments')
        # tagged templates carry the template itself in the arguments field
        args = _named(arguments) if arguments.type == 'arguments' else [arguments]
        for i, arg in enumerate(args):
            children.append(_child('arguments', i, arg, source))
    elif kind is NodeKind.FUNCTION:
        params = ts_node.child_by_field_name('parameters') or ts_node.child_by_field_name('parameter')
        if params is not None:
            children.append(_child('parameters', None, params, source))
        children.append(_child('body', None, ts_node.child_by_field_name('body'), source))
    elif kind is NodeKind.OBJECT_LITERAL:
        for i, member in enumerate(_named(ts_node)):
            children.append(_child('properties', i, member, source))
    elif kind is NodeKind.PROPERTY:
        children.append(_child('key', None, ts_node.child_by_field_name('key'), source))
        children.append(_child('value', None, ts_node.child_by_field_name('value'), source))
    elif kind is NodeKind.TERNARY:
        children.append(_child('condition', None, ts_node.child_by_field_name('condition'), source))
        children.append(_child('consequent', None, ts_node.child_by_field_name('consequence'), source))
        children.append(_child('alternate', None, ts_node.child_by_field_name('alternative'), source))
    elif kind is NodeKind.TEMPLATE:
        substitutions = [c for c in ts_node.named_children if c.type == 'template_substitution']
        pos = ts_node.start_byte + 1
        for i, sub in enumerate(substitutions):
            children.append(_Child('quasis', i, pos, sub.start_byte, None,
                                   _template_element(source, pos, sub.start_byte, node.location)))
            inner = _named(sub)
            if inner:
                children.append(_child('expressions', i, inner[0], source))
            pos = sub.end_byte
        end = max(pos, ts_node.end_byte - 1)
        children.append(_Child('quasis', len(substitutions), pos, end, None,
                               _template_element(source, pos, end, node.location)))
    else:
        for i, child in enumerate(_named(ts_node)):
            children.append(_child('children', i, child, source))
    return children


def _assemble(node: SyntaxNode, children: List[_Child], source: bytes, start: int, end: int) -> None:
    """Fill the child slots of *node* and record its text fragments."""
    for name, arity in SLOT_LAYOUT[node.kind]:
        if arity is SEQUENCE:
            node.slots[name] = []
        elif name not in node.slots:
            node.slots[name] = None

    for child in children:
        if child.index is None:
            node.slots[child.slot] = child.node
        else:
            node.slots[child.slot].append(child.node)

    if not children:
        node.fragments = [_text(source, start, end)]
        return

    fragments = []
    pos = start
    for child in sorted(children, key=lambda c: (c.start, c.end)):
        if child.start > pos:
            fragments.append(_text(source, pos, child.start))
        fragments.append((child.slot, child.index))
        pos = max(pos, child.end)
    if pos < end:
        fragments.append(_text(source, pos, end))
    node.fragments = fragments


def build_syntax_tree(ts_root, source: bytes) -> SyntaxNode:
    """Convert a tree-sitter tree into SyntaxNodes without recursion."""
    root = _shell(ts_root, source)
    # The root spans the whole file so leading and trailing trivia survive
    stack = [(ts_root, root, 0, len(source))]
    while stack:
        ts_node, node, start, end = stack.pop()
        children = _children_of(node, ts_node, source)
        _assemble(node, children, source, start, end)
        for child in children:
            if child.ts_node is not None:
                stack.append((child.ts_node, child.node, child.start, child.end))
    return root


def parse_source(code: str, file_path: Union[str, Path, None] = None, language: Optional[str] = None) -> SyntaxNode:
    """Parse JS/TS source text into a SyntaxNode tree."""
    language = language or language_for_path(file_path)
    source = code.encode('utf-8')
    tree = _parser_for(language).parse(source)
    if tree.root_node.has_error:
        logger.warning(f"Syntax errors in {file_path or '<source>'}; unparsed regions are kept verbatim")
    return build_syntax_tree(tree.root_node, source)


def parse_file(file_path: Union[str, Path]) -> SyntaxNode:
    """Parse a JS/TS file from disk."""
    with open(file_path, 'r', encoding='utf-8') as f:
        code = f.read()
    return parse_source(code, file_path)


def generate_code(root: SyntaxNode) -> str:
    return render(root)
