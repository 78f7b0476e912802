"""
Style Engine Module
The capability that turns one style declaration into a utility-class token.

The transformer only depends on the StyleEngine protocol. UtilityClassEngine
is the engine used by the command line tool; it names classes but never
writes CSS.
"""

import json
import logging
import threading
from typing import Callable, Dict, Protocol, Tuple

from .content_hasher import SEED, cipher

logger = logging.getLogger(__name__)

ALPHA = 'abcdefghijklmnopqrstuvwxyz'
ALPHANUMERIC = 'abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
VOWELS = set('aeiouAEIOU')


class StyleEngine(Protocol):
    def transform(self, property_name: str, value: str, module_scoped: bool,
                  file_path: str, pseudo_group: str) -> str:
        """Return a class-name token, or '' when the declaration is not recognized."""
        ...


class CallableStyleEngine:
    """Adapts a plain function with the engine signature."""

    def __init__(self, func: Callable[[str, str, bool, str, str], str]):
        self.func = func

    def transform(self, property_name, value, module_scoped, file_path, pseudo_group):
        return self.func(property_name, value, module_scoped, file_path, pseudo_group)


def generate_abbreviation(text: str) -> str:
    """Consonant-based abbreviation: 'background-color' -> 'bgd-clr'."""
    kept = ''.join(c for c in text if (c.isascii() and c.isalpha() and c not in VOWELS) or c == '-')
    words = []
    for word in kept.split('-'):
        if len(word) > 2:
            words.append(word[0] + word[len(word) // 2] + word[-1])
        else:
            words.append(word)
    return '-'.join(words)


def generate_prefix(text: str, is_alpha: bool = False, size: int = 4) -> str:
    """Short base-26/base-62 name derived from the cipher of *text*."""
    alphabet = ALPHA if is_alpha else ALPHANUMERIC
    base = len(alphabet)
    x = cipher(text, SEED)
    name = ''
    while x > base:
        name = alphabet[x % base] + name
        x //= base
    name = alphabet[x % base] + name
    return name[-size:] if len(name) > size else name


class UtilityClassEngine:
    """
    Derive tokens shaped like ``[scope-][pseudo-]property-value``.

    Module-scoped tokens carry a short digest of the file path so equal
    declarations in different modules get different names. Generated tokens
    are kept in ``generated`` for reporting.
    """

    def __init__(self):
        self.generated: Dict[str, Tuple[str, str, str]] = {}
        self.calls = 0
        self._lock = threading.Lock()

    def transform(self, property_name: str, value: str, module_scoped: bool,
                  file_path: str, pseudo_group: str) -> str:
        raw = json.loads(value)
        if not property_name or not raw.strip():
            return ''

        parts = []
        if module_scoped:
            parts.append(generate_prefix(file_path, True, 4))
        if pseudo_group:
            parts.append(generate_abbreviation(pseudo_group))
        parts.append(generate_abbreviation(property_name) or property_name.lower())
        parts.append(generate_prefix(f'{pseudo_group}:{property_name}:{raw}', False, 6))
        token = '-'.join(parts)

        with self._lock:
            self.calls += 1
            self.generated[token] = (property_name, raw, pseudo_group)
        logger.debug(f"{pseudo_group or '_'}:{property_name}={raw} -> {token}")
        return token
