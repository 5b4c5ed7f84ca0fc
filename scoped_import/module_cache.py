"""Module cache - single source of truth for module file loads.

A module file is evaluated at most once per distinct content: entries are
keyed by canonical path and carry the fingerprint the file had when it was
evaluated. A changed fingerprint replaces the entry on the next load.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from pathlib import Path

from .errors import CyclicImportError
from .errors import EvaluationError
from .errors import ScopedImportError
from .errors import SourceNotFoundError
from .evaluator import Evaluator
from .evaluator import PythonFileEvaluator
from .placement import Namespace
from .settings import FingerprintMode

logger = logging.getLogger(__name__)


@dataclass
class ModuleCacheEntry:
    """A module file as of its last evaluation."""

    path: Path
    fingerprint: str
    namespace: Namespace
    loaded_at: str


def compute_fingerprint(path: Path, mode: FingerprintMode) -> str:
    """Fingerprint a module file.

    Args:
        path: Module file
        mode: MTIME (modification time and size) or HASH (SHA-256 of contents)

    Returns:
        Fingerprint string, prefixed with the mode

    Raises:
        SourceNotFoundError: File cannot be read
    """
    try:
        if mode is FingerprintMode.MTIME:
            stat = path.stat()
            return f"mtime:{stat.st_mtime_ns}:{stat.st_size}"
        return "sha256:" + hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError as e:
        raise SourceNotFoundError(str(path), str(e)) from e


class ModuleCache:
    """Process-scoped registry of evaluated module files."""

    def __init__(
        self,
        evaluator: Evaluator | None = None,
        fingerprint: FingerprintMode = FingerprintMode.HASH,
    ):
        """Initialize an empty cache.

        Args:
            evaluator: Runs module files (defaults to PythonFileEvaluator)
            fingerprint: Change detection mode
        """
        self.evaluator = evaluator or PythonFileEvaluator()
        self.fingerprint_mode = FingerprintMode(fingerprint)
        self._entries: dict[Path, ModuleCacheEntry] = {}
        self._lock = threading.Lock()
        # Load ownership: path -> owning thread, thread -> path it waits for
        self._owners: dict[Path, int] = {}
        self._waiting: dict[int, Path] = {}
        self._released = threading.Condition(self._lock)
        self._local = threading.local()

    def get_or_load(self, path: Path) -> Namespace:
        """Return a module's namespace, evaluating the file only if needed.

        Args:
            path: Canonical module path

        Returns:
            The cached namespace when the fingerprint is unchanged, else a
            freshly evaluated one

        Raises:
            CyclicImportError: The module is already being loaded on this thread,
                               or waiting for it would deadlock with other threads
            EvaluationError: The evaluator failed
            SourceNotFoundError: The file cannot be read
        """
        path = Path(path)

        with self.loading(path):
            with self._owned(path):
                fingerprint = compute_fingerprint(path, self.fingerprint_mode)
                with self._lock:
                    entry = self._entries.get(path)

                if entry is not None and entry.fingerprint == fingerprint:
                    logger.debug(f"[import:cache] hit {path}", extra={"path": str(path), "event": "hit"})
                    return entry.namespace

                if entry is not None:
                    logger.debug(
                        f"[import:cache] stale {path} ({entry.fingerprint} -> {fingerprint})",
                        extra={"path": str(path), "event": "stale", "fingerprint": fingerprint},
                    )
                else:
                    logger.debug(
                        f"[import:cache] miss {path}",
                        extra={"path": str(path), "event": "miss", "fingerprint": fingerprint},
                    )

                namespace = self._evaluate(path)
                with self._lock:
                    self._entries[path] = ModuleCacheEntry(
                        path=path,
                        fingerprint=fingerprint,
                        namespace=namespace,
                        loaded_at=datetime.now(UTC).isoformat(timespec="milliseconds"),
                    )
                return namespace

    @contextmanager
    def loading(self, path: Path) -> Iterator[None]:
        """Mark a file as being loaded on this thread for the duration.

        Raises:
            CyclicImportError: The file is already on this thread's load stack
        """
        stack = self._stack()
        if path in stack:
            cycle = [*stack[stack.index(path) :], path]
            raise CyclicImportError(cycle)

        stack.append(path)
        try:
            yield
        finally:
            stack.pop()

    def current_module(self) -> Path | None:
        """Path of the innermost module being loaded on this thread."""
        stack = self._stack()
        return stack[-1] if stack else None

    def invalidate(self, path: Path) -> bool:
        """Drop one entry so the next load re-evaluates the file.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            removed = self._entries.pop(Path(path), None) is not None
        if removed:
            logger.debug(f"[import:cache] invalidated {path}", extra={"path": str(path), "event": "invalidated"})
        return removed

    def clear(self) -> int:
        """Drop every entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"[import:cache] cleared {count} entries", extra={"event": "cleared", "count": count})
        return count

    def get(self, path: Path) -> ModuleCacheEntry | None:
        with self._lock:
            return self._entries.get(Path(path))

    def entries(self) -> list[ModuleCacheEntry]:
        """Snapshot of all entries, sorted by path."""
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: str(e.path))

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return isinstance(path, Path) and path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evaluate(self, path: Path) -> Namespace:
        try:
            bindings = self.evaluator.evaluate(path)
        except ScopedImportError:
            # Nested import failures (cycles, missing names) keep their identity
            raise
        except Exception as e:
            raise EvaluationError(path, e) from e

        logger.debug(
            f"[import:cache] evaluated {path} ({len(bindings)} bindings)",
            extra={"path": str(path), "event": "evaluated"},
        )
        return Namespace(str(path), bindings)

    @contextmanager
    def _owned(self, path: Path) -> Iterator[None]:
        """Own a path for loading, waiting while another thread owns it.

        Ownership is dropped on release, so only paths being loaded right
        now are tracked.

        Raises:
            CyclicImportError: Waiting would close a loop of threads, each
                               waiting for a path the next one owns
        """
        me = threading.get_ident()
        with self._released:
            while path in self._owners:
                cycle = self._wait_cycle(path, me)
                if cycle is not None:
                    logger.debug(
                        f"[import:cache] deadlock on {path}",
                        extra={"path": str(path), "event": "deadlock"},
                    )
                    raise CyclicImportError(cycle)
                self._waiting[me] = path
                try:
                    self._released.wait()
                finally:
                    del self._waiting[me]
            self._owners[path] = me

        try:
            yield
        finally:
            with self._released:
                del self._owners[path]
                self._released.notify_all()

    def _wait_cycle(self, path: Path, me: int) -> list[Path] | None:
        """Follow owner -> awaited path links from path; the paths walked if they lead back to me.

        Caller holds self._lock.
        """
        walked = [path]
        seen: set[int] = set()
        owner = self._owners.get(path)
        while owner is not None and owner not in seen:
            if owner == me:
                return [*walked, path]
            seen.add(owner)
            awaited = self._waiting.get(owner)
            if awaited is None:
                return None
            walked.append(awaited)
            owner = self._owners.get(awaited)
        return None

    def loading_paths(self) -> list[Path]:
        """Paths some thread is loading right now."""
        with self._lock:
            return sorted(self._owners, key=str)

    def _stack(self) -> list[Path]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def __repr__(self) -> str:
        return f"ModuleCache({len(self)} entries, fingerprint={self.fingerprint_mode.value})"
