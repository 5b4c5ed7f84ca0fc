"""Module file evaluation.

The module cache delegates evaluation to an Evaluator; each call must run
the file in a fresh namespace and return the resulting bindings.
"""

import builtins
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from typing import Protocol

logger = logging.getLogger(__name__)

# Bindings seeded by the evaluator rather than defined by the module
EVALUATOR_BINDINGS = frozenset(
    {"__name__", "__file__", "__builtins__", "__cached__", "__loader__", "__spec__", "__package__", "__doc__"}
)


class Evaluator(Protocol):
    """Runs a module file and returns its top-level bindings."""

    def evaluate(self, path: Path) -> Mapping[str, Any]: ...


class PythonFileEvaluator:
    """Evaluates Python source files in isolated globals."""

    def evaluate(self, path: Path) -> dict[str, Any]:
        """Compile and execute a module file.

        Args:
            path: Canonical path of the module file

        Returns:
            The module's globals after execution
        """
        # compile() on bytes honors PEP 263 encoding declarations
        code = compile(path.read_bytes(), str(path), "exec")
        namespace: dict[str, Any] = {
            "__name__": path.stem,
            "__file__": str(path),
            "__builtins__": builtins,
        }
        logger.debug(f"[import:eval] executing {path}")
        exec(code, namespace)
        return namespace

    def __repr__(self) -> str:
        return "PythonFileEvaluator()"
