"""
Style Alchemist Module
The transformation pass: finds style calls in a tree, memoizes their
transformed bodies and writes the generated tokens back into the tree.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from .content_hasher import fingerprint
from .declaration_locator import DEFAULT_CALLEE, StyleCallSite, locate_style_callback
from .exclusion_filter import ExclusionFilter
from .js_treesitter_parser import generate_code, parse_source
from .property_transformer import PropertyTransformer
from .style_engine import StyleEngine
from .syntax_tree import SyntaxNode
from .transform_cache import TransformCache
from .tree_walker import walk_tree

logger = logging.getLogger(__name__)


@dataclass
class FileReport:
    """Outcome of one pass over a file."""
    file_path: str
    call_sites: int = 0
    transformed: int = 0
    reused: int = 0
    excluded: bool = False
    code: Optional[str] = None


class StyleAlchemist:
    """
    Transformation pass shared by every file of a run.

    The cache is passed in so one cache can serve a whole build or watch
    session; a fresh one is created when none is given. Exclusion entries are
    resolved against *root_dir*, or the working directory when it is None.
    """

    def __init__(self, engine: StyleEngine, cache: Optional[TransformCache] = None, module_scoped: bool = False,
                 callee_name: str = DEFAULT_CALLEE, exclude: Sequence[str] = (),
                 root_dir: Union[str, Path, None] = None):
        self.cache = cache if cache is not None else TransformCache()
        self.transformer = PropertyTransformer(engine)
        self.module_scoped = module_scoped
        self.callee_name = callee_name
        self.exclusion_filter = ExclusionFilter(exclude, root_dir)

    def is_excluded(self, file_path: Union[str, Path]) -> bool:
        return self.exclusion_filter.is_excluded(file_path)

    def visit(self, node: SyntaxNode, file_path: str = '', report: Optional[FileReport] = None) -> bool:
        """
        Handle one node met by a traversal; returns True when it was a style call.

        This is the entry point for hosts that run their own traversal.
        """
        site = locate_style_callback(node, self.callee_name)
        if site is None:
            return False
        reused = self._resolve(site, file_path)
        if report is not None:
            report.call_sites += 1
            if reused:
                report.reused += 1
            else:
                report.transformed += 1
        return True

    def _resolve(self, site: StyleCallSite, file_path: str) -> bool:
        body = site.body
        key = fingerprint(body)
        line, column = site.call.location

        def transform(target: SyntaxNode) -> None:
            walk_tree(target, lambda n: self.transformer.transform_object(n, self.module_scoped, file_path, ''))

        result, reused = self.cache.resolve(key, body, transform)
        if reused:
            site.replace_body(result)
            logger.debug(f"{file_path}:{line}:{column} reused styles {key}")
        else:
            logger.debug(f"{file_path}:{line}:{column} transformed styles {key}")
        return reused

    def transform_tree(self, root: SyntaxNode, file_path: str = '') -> FileReport:
        """Walk a whole tree and transform every style call in it."""
        report = FileReport(file_path=file_path)
        walk_tree(root, lambda node: self.visit(node, file_path, report))
        return report

    def transform_source(self, code: str, file_path: str = '') -> FileReport:
        """Parse, transform and regenerate *code*; the result is in ``report.code``."""
        root = parse_source(code, file_path)
        report = self.transform_tree(root, file_path)
        report.code = generate_code(root)
        return report

    def process_file(self, file_path: Union[str, Path]) -> FileReport:
        """
        Transform one file from disk unless it is excluded.

        Read and decode errors propagate to the caller, which decides whether
        the rest of the run continues.
        """
        path = str(file_path)
        if self.is_excluded(path):
            logger.debug(f"Skipping excluded file: {path}")
            return FileReport(file_path=path, excluded=True)

        with open(path, 'r', encoding='utf-8') as f:
            code = f.read()
        report = self.transform_source(code, path)
        if report.call_sites:
            logger.info(f"{path}: {report.call_sites} style call(s), "
                        f"{report.transformed} transformed, {report.reused} reused")
        return report
