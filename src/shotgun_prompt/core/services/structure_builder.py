from __future__ import annotations

"""
File Structure Builder Service.

Assembles the structure document: a directory tree of the selected paths
with every leaf's guarded content embedded beneath it. Content loading
runs on a bounded thread pool sized by ``max_concurrency``; each worker
polls the cancellation event before touching its file, and a failure in
one worker is recorded inline for that file only.
"""

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from shotgun_prompt.core.analysis.tree_builder import build_directory_tree
from shotgun_prompt.core.analysis.tree_renderer import render_tree_with_content
from shotgun_prompt.core.cancellation import check_cancelled, is_cancelled
from shotgun_prompt.core.pipeline.components.reader import load_file_content
from shotgun_prompt.core.services.classifier import (
    BinaryClassifier,
    BinaryDetector,
    compile_sensitive_patterns,
    is_sensitive_file,
)
from shotgun_prompt.domain.constants import DEFAULT_MAX_CONCURRENCY, DEFAULT_MAX_FILE_SIZE
from shotgun_prompt.domain.errors import GenerationCancelledError
from shotgun_prompt.domain.tree_models import DEFAULT_TREE_FORMAT, FileContent, TreeFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _BuildSnapshot:
    max_file_size: int
    max_concurrency: int
    tree_format: TreeFormat


class FileStructureBuilder:
    """
    Generates tree-structured file content representations.

    Settings may be changed from any thread while builds are in flight;
    every build takes one consistent snapshot of them when it starts.
    """

    def __init__(
            self,
            *,
            max_file_size: int = DEFAULT_MAX_FILE_SIZE,
            max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
            tree_format: TreeFormat = DEFAULT_TREE_FORMAT,
            binary_detector: Optional[BinaryClassifier] = None,
    ) -> None:
        _require_positive("file size", max_file_size)
        _require_positive("concurrency", max_concurrency)
        _require_positive("indent size", tree_format.indent_size)

        self._lock = threading.Lock()
        self._max_file_size = max_file_size
        self._max_concurrency = max_concurrency
        self._tree_format = tree_format
        self._binary_detector: BinaryClassifier = binary_detector or BinaryDetector()
        self._sensitive_patterns: List[re.Pattern] = compile_sensitive_patterns()

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------

    @property
    def max_file_size(self) -> int:
        with self._lock:
            return self._max_file_size

    @property
    def max_concurrency(self) -> int:
        with self._lock:
            return self._max_concurrency

    @property
    def tree_format(self) -> TreeFormat:
        with self._lock:
            return self._tree_format

    def set_max_file_size(self, size: int) -> None:
        """Update the content size limit. Raises ValueError if not positive."""
        _require_positive("file size", size)
        with self._lock:
            self._max_file_size = size

    def set_max_concurrency(self, workers: int) -> None:
        """Update the loader pool size. Raises ValueError if not positive."""
        _require_positive("concurrency", workers)
        with self._lock:
            self._max_concurrency = workers

    def set_tree_format(self, fmt: TreeFormat) -> None:
        """Update the rendering options. Raises ValueError on a non-positive indent."""
        _require_positive("indent size", fmt.indent_size)
        with self._lock:
            self._tree_format = fmt

    def is_sensitive_file(self, path: str) -> bool:
        return is_sensitive_file(path, self._sensitive_patterns)

    # -------------------------------------------------------------------------
    # GENERATION
    # -------------------------------------------------------------------------

    def generate_structure(
            self,
            paths: Sequence[str],
            cancellation_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Build the structure document for ``paths``.

        Args:
            paths: Selected file paths (caller-owned, not modified).
            cancellation_event: Optional event polled before each file.

        Returns:
            str: Tree lines with embedded ``<file>`` blocks; "" for no paths.

        Raises:
            GenerationCancelledError: If cancellation was observed before any
                file's work began. Files loaded before that point are discarded
                with the rest of the build.
        """
        if not paths:
            return ""

        check_cancelled(cancellation_event, "structure build")
        snapshot = self._snapshot()

        tree = build_directory_tree(paths)
        contents = self._load_contents(paths, snapshot, cancellation_event)

        return render_tree_with_content(tree, contents, snapshot.tree_format)

    # -------------------------------------------------------------------------
    # INTERNAL HELPERS
    # -------------------------------------------------------------------------

    def _snapshot(self) -> _BuildSnapshot:
        with self._lock:
            return _BuildSnapshot(
                max_file_size=self._max_file_size,
                max_concurrency=self._max_concurrency,
                tree_format=self._tree_format,
            )

    def _load_contents(
            self,
            paths: Sequence[str],
            snapshot: _BuildSnapshot,
            cancellation_event: Optional[threading.Event],
    ) -> Dict[str, FileContent]:
        unique_paths = list(dict.fromkeys(paths))
        workers = min(snapshot.max_concurrency, len(unique_paths))
        logger.debug(f"Loading {len(unique_paths)} file(s) with {workers} worker(s).")

        def _task(path: str) -> Optional[FileContent]:
            if is_cancelled(cancellation_event):
                return None
            return self._load_one(path, snapshot.max_file_size)

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="StructureReader")
        try:
            results = list(executor.map(_task, unique_paths))
        except BaseException:
            # Interrupted while waiting: drop queued reads instead of draining them
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        contents: Dict[str, FileContent] = {}
        skipped = 0
        for path, loaded in zip(unique_paths, results):
            if loaded is None:
                skipped += 1
                continue
            contents[path] = loaded

        if skipped:
            logger.info(
                f"Structure build cancelled: {len(contents)} loaded, {skipped} not started."
            )
            raise GenerationCancelledError("content loading")

        return contents

    def _load_one(self, path: str, max_file_size: int) -> FileContent:
        try:
            return load_file_content(
                path,
                max_file_size,
                self._binary_detector,
                self._sensitive_patterns,
            )
        except Exception as e:
            # Classifier collaborators are pluggable; isolate their failures too
            logger.error(f"Unexpected failure loading '{path}': {e}")
            return FileContent(path=path, error=str(e))


def _require_positive(label: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{label} must be positive, got {value}")
