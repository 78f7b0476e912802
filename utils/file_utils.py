"""
File Utilities Module
Source discovery and file reading/writing for the build commands.
"""

import fnmatch
import os
from pathlib import Path
from typing import List, Sequence

# Never worth transforming
DEFAULT_IGNORE = ['node_modules/**', '*.config.js', '*.config.ts']
SKIPPED_DIRECTORIES = {'node_modules'}


def normalize_path(path: str | Path) -> Path:
    """Convert string path to normalized Path object."""
    return Path(path).resolve()


def is_hidden(path: Path) -> bool:
    """Check if a file or directory is hidden."""
    # Check for hidden files/directories in Unix-like systems
    if path.name.startswith('.'):
        return True

    # Check for hidden files/directories in Windows
    try:
        import ctypes
        attrs = ctypes.windll.kernel32.GetFileAttributesW(str(path))
        return attrs & 2 != 0
    except (AttributeError, ImportError):
        return False


def is_ignored(rel_path: str, ignore: Sequence[str]) -> bool:
    """Match a root-relative posix path against glob patterns."""
    return any(fnmatch.fnmatchcase(rel_path, pattern) for pattern in ignore)


def get_all_files_by_extension(path: str | Path, extensions: List[str]) -> List[Path]:
    """
    Recursively collect all files with specified extensions.

    Args:
        path: Base directory path
        extensions: List of file extensions to collect (e.g., ['.js', '.tsx'])

    Returns:
        List of Path objects for matching files, in a stable order
    """
    base_path = normalize_path(path)
    matching_files = []

    # Convert extensions to lowercase for case-insensitive matching
    extensions = [ext.lower() for ext in extensions]

    for root, dirs, files in os.walk(base_path):
        # Skip hidden and dependency directories
        dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRECTORIES and not is_hidden(Path(root) / d))

        for file in sorted(files):
            file_path = Path(root) / file

            # Skip hidden files
            if is_hidden(file_path):
                continue

            # Check if file has any of the target extensions
            if any(file.lower().endswith(ext) for ext in extensions):
                matching_files.append(file_path)

    return matching_files


def discover_source_files(root: str | Path, extensions: List[str], ignore: Sequence[str] = ()) -> List[Path]:
    """
    Collect candidate source files for a one-shot build.

    Args:
        root: Project root
        extensions: Extensions to include
        ignore: Glob patterns, relative to root, added to DEFAULT_IGNORE

    Returns:
        Absolute paths of the files to process
    """
    base_path = normalize_path(root)
    patterns = list(DEFAULT_IGNORE) + list(ignore)
    found = []
    for file_path in get_all_files_by_extension(base_path, extensions):
        rel_path = file_path.relative_to(base_path).as_posix()
        if not is_ignored(rel_path, patterns):
            found.append(file_path)
    return found


def ensure_directory(directory: Path) -> None:
    """Ensure directory exists, create if necessary."""
    directory.mkdir(parents=True, exist_ok=True)


def write_file_content(file_path: Path, content: str) -> None:
    """Write content, creating parent directories as needed."""
    ensure_directory(Path(file_path).parent)
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(content)
