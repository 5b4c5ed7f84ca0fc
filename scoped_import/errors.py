"""Error taxonomy for selective imports.

Every failure surfaces to the statement's caller as a subclass of
ScopedImportError carrying the structured details needed to act on it:
- InvalidImportStatementError: malformed statement (fail-fast)
- AmbiguousSourceError / SourceNotFoundError: source classification problems
- NameNotExportedError / NameNotFoundInModuleError: unresolved names (aggregated)
- DuplicateLocalNameError: two exports mapped to one local name
- CyclicImportError: module load cycle
- EvaluationError: module evaluation failed
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any


class ScopedImportError(Exception):
    """Base class for all import statement failures."""


class InvalidImportStatementError(ScopedImportError):
    """Raised when an import statement's arguments are malformed."""

    def __init__(self, reason: str, argument: Any = None):
        self.reason = reason
        self.argument = argument
        message = reason if argument is None else f"{reason}: {argument!r}"
        super().__init__(message)


class AmbiguousSourceError(ScopedImportError):
    """Raised when a source token could denote both a package and a file."""

    def __init__(self, token: str, candidates: Sequence[str]):
        self.token = token
        self.candidates = list(candidates)
        super().__init__(
            f"Source '{token}' is ambiguous (could be {' or '.join(self.candidates)}). "
            f"Pass _kind='package' or _kind='file' to disambiguate."
        )


class SourceNotFoundError(ScopedImportError):
    """Raised when a source names no readable file or importable package."""

    def __init__(self, token: str, detail: str | None = None):
        self.token = token
        self.detail = detail
        message = f"Source not found: {token}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class NameNotExportedError(ScopedImportError):
    """Raised when a package does not export one or more requested names."""

    def __init__(self, source: Any, names: Sequence[str]):
        self.source = source
        self.names = list(names)
        super().__init__(f"{_plural(self.names)} not exported by package '{source}': {', '.join(self.names)}")


class NameNotFoundInModuleError(ScopedImportError):
    """Raised when a module file does not define one or more requested names."""

    def __init__(self, path: Path, names: Sequence[str]):
        self.path = path
        self.names = list(names)
        super().__init__(f"{_plural(self.names)} not found in module {path}: {', '.join(self.names)}")


class DuplicateLocalNameError(ScopedImportError):
    """Raised when different exports are mapped to the same local name in one statement."""

    def __init__(self, local_name: str, exported_names: Sequence[str]):
        self.local_name = local_name
        self.exported_names = list(exported_names)
        super().__init__(
            f"Local name '{local_name}' is bound to more than one export: {', '.join(self.exported_names)}"
        )


class CyclicImportError(ScopedImportError):
    """Raised when a module is requested while it is still being loaded.

    Covers a module reached again on the same thread and threads that would
    wait on each other's loads forever.
    """

    def __init__(self, cycle: Sequence[Path]):
        self.cycle = list(cycle)
        super().__init__("Cyclic module import: " + " -> ".join(str(p) for p in self.cycle))


class EvaluationError(ScopedImportError):
    """Raised when evaluating a module file fails.

    The evaluator's original exception is kept as ``__cause__``.
    """

    def __init__(self, path: Path, error: BaseException):
        self.path = path
        self.error = error
        super().__init__(f"Failed to evaluate module {path}: {type(error).__name__}: {error}")


def _plural(names: Sequence[str]) -> str:
    return "Name" if len(names) == 1 else "Names"
