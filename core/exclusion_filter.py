"""
Exclusion Filter Module
Decides from configured path patterns whether a file is processed at all.
"""

import fnmatch
import os
from pathlib import Path
from typing import List, Optional, Sequence, Union


def expand_exclusion_entry(entry: str) -> str:
    """A bare folder name such as 'tests' becomes 'tests/**'; other entries are glob patterns."""
    if '/' not in entry and '.' not in entry:
        return f'{entry}/**'
    if entry.startswith('./'):
        return entry[2:]
    return entry


def relative_posix(file_path: Union[str, Path], root_dir: Union[str, Path, None] = None) -> str:
    """Path relative to *root_dir* with forward slashes; absolute when outside the root."""
    path = str(file_path)
    if os.path.isabs(path) and root_dir is not None:
        rel = os.path.relpath(path, str(root_dir))
        if not rel.startswith('..'):
            path = rel
    path = Path(path).as_posix()
    while path.startswith('./'):
        path = path[2:]
    return path


class ExclusionFilter:
    """
    Matches files against the configured exclusion entries.

    Absolute paths are made relative to *root_dir*, which defaults to the
    working directory at construction time.
    """

    def __init__(self, entries: Sequence[str] = (), root_dir: Union[str, Path, None] = None):
        self.entries: List[str] = list(entries)
        self.patterns: List[str] = [expand_exclusion_entry(e) for e in self.entries]
        self.root_dir: str = os.path.abspath(str(root_dir) if root_dir is not None else os.getcwd())

    def matching_pattern(self, file_path: Union[str, Path]) -> Optional[str]:
        rel = relative_posix(file_path, self.root_dir)
        for pattern in self.patterns:
            if fnmatch.fnmatchcase(rel, pattern):
                return pattern
        return None

    def is_excluded(self, file_path: Union[str, Path]) -> bool:
        rel = relative_posix(file_path, self.root_dir)
        # hidden files and folders at the top of the project
        if rel.startswith('.'):
            return True
        return self.matching_pattern(file_path) is not None
