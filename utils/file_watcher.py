"""
File Watcher Module
Polls a project tree for changed source files.
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .file_utils import discover_source_files

logger = logging.getLogger(__name__)


class PollingWatcher:
    """
    Detects created and modified files by comparing modification times.

    Each changed path is delivered to the callback on its own, one after the
    other; a failing callback is logged and does not stop the loop.
    """

    def __init__(self, root: str | Path, extensions: List[str], ignore: Sequence[str] = (),
                 interval: float = 0.5):
        self.root = Path(root)
        self.extensions = extensions
        self.ignore = list(ignore)
        self.interval = interval
        self._mtimes: Dict[Path, float] = self.snapshot()

    def snapshot(self) -> Dict[Path, float]:
        mtimes = {}
        for path in discover_source_files(self.root, self.extensions, self.ignore):
            try:
                mtimes[path] = os.stat(path).st_mtime
            except OSError as e:
                logger.warning(f"Cannot stat {path}: {e}")
        return mtimes

    def poll(self) -> List[Path]:
        """Return the files created or modified since the previous poll."""
        current = self.snapshot()
        changed = [path for path, mtime in current.items() if self._mtimes.get(path) != mtime]
        self._mtimes = current
        return changed

    def watch(self, callback: Callable[[Path], object], stop_event: Optional[threading.Event] = None,
              max_cycles: Optional[int] = None) -> None:
        """Poll until *stop_event* is set or *max_cycles* polls have run."""
        cycles = 0
        while stop_event is None or not stop_event.is_set():
            for path in self.poll():
                try:
                    callback(path)
                except Exception as e:
                    logger.error(f"Error handling change to {path}: {str(e)}", exc_info=True)
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            if stop_event is not None:
                stop_event.wait(self.interval)
            else:
                time.sleep(self.interval)
