"""
Content Hasher Module
Fingerprints style callback bodies for the transform cache.

The digest is a 64-bit djb2-style cipher, not a cryptographic hash. Two
different bodies can collide; when they do, the second body silently receives
the first body's transformation. Whitespace is removed before hashing, so
bodies that differ only in layout share a fingerprint.
"""

import re

from .syntax_tree import SyntaxNode, render

SEED = 5381
FINGERPRINT_WIDTH = 16
_MASK = (1 << 64) - 1
_WHITESPACE = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    return _WHITESPACE.sub('', text)


def cipher(text: str, seed: int = SEED) -> int:
    """Walk the UTF-8 bytes from last to first, multiplying by 33 and xor-ing each byte."""
    data = text.encode('utf-8')
    value = seed
    for byte in reversed(data):
        value = ((value * 33) & _MASK) ^ byte
    return ((value * 33) & _MASK) ^ len(data)


def fingerprint_text(text: str) -> str:
    return format(cipher(normalize_text(text)), f'0{FINGERPRINT_WIDTH}x')


def fingerprint(body: SyntaxNode) -> str:
    """Fingerprint of a callback body's source with all whitespace removed."""
    return fingerprint_text(render(body))
