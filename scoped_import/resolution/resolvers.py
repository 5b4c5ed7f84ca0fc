"""Source token classification.

Turns whatever a statement names as its source into a FileSource or a
PackageSource:

1. An existing Source object is used as-is
2. A module object names its package
3. Path-like objects, and strings shaped like paths, are module files
4. A bare token naming an existing file is a module file, unless it is also
   an importable package (ambiguous without an explicit kind)
5. Anything else is a package
"""

import importlib.util
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import Any

from ..errors import AmbiguousSourceError
from ..errors import InvalidImportStatementError
from ..errors import SourceNotFoundError
from .sources import FileSource
from .sources import PackageSource
from .sources import SourceKind

logger = logging.getLogger(__name__)


class SourceResolver:
    """Classifies source tokens and canonicalizes module paths."""

    def __init__(self, module_suffixes: Sequence[str] = (".py",)):
        """Initialize resolver.

        Args:
            module_suffixes: File suffixes that mark a string token as a module path
        """
        self.module_suffixes = tuple(module_suffixes)

    def resolve(
        self,
        token: Any,
        base_dir: Path | None = None,
        kind: SourceKind = SourceKind.AUTO,
    ) -> FileSource | PackageSource:
        """Classify a source token.

        Args:
            token: Source as given in the statement
            base_dir: Directory relative module paths are resolved against
                      (defaults to the working directory)
            kind: Explicit classification, or AUTO

        Returns:
            FileSource or PackageSource

        Raises:
            InvalidImportStatementError: Token is not a usable source
            AmbiguousSourceError: Bare token is both a file and a package
            SourceNotFoundError: Path-shaped token names no readable file
        """
        if isinstance(token, (FileSource, PackageSource)):
            return token

        if isinstance(token, ModuleType):
            return PackageSource(token.__name__)

        base_dir = base_dir or Path.cwd()

        if isinstance(token, os.PathLike):
            return self._file_source(os.fspath(token), base_dir)

        if not isinstance(token, str) or not token.strip():
            raise InvalidImportStatementError("Import source must be a non-empty string, path, or module", token)

        if kind is SourceKind.PACKAGE:
            return PackageSource(token)
        if kind is SourceKind.FILE:
            return self._file_source(token, base_dir)

        if self._has_path_shape(token):
            source = self._file_source(token, base_dir)
            logger.debug(f"[import:source] {token} -> file ({source.path})")
            return source

        candidate = base_dir / token
        is_file = candidate.is_file()
        is_package = self._is_importable(token)

        if is_file and is_package:
            raise AmbiguousSourceError(token, [f"file {candidate}", f"package '{token}'"])
        if is_file:
            logger.debug(f"[import:source] {token} -> file ({candidate})")
            return self._file_source(token, base_dir)

        logger.debug(f"[import:source] {token} -> package")
        return PackageSource(token)

    def _has_path_shape(self, token: str) -> bool:
        return (
            token.startswith(("file://", ".", "~"))
            or "/" in token
            or (os.sep != "/" and os.sep in token)
            or token.endswith(self.module_suffixes)
        )

    def _file_source(self, token: str, base_dir: Path) -> FileSource:
        """Canonicalize a module path.

        Raises:
            SourceNotFoundError: No readable file at the path
        """
        if token.startswith("file://"):
            token = token[7:]

        path = Path(token).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        path = path.resolve()

        if not path.is_file():
            raise SourceNotFoundError(token, f"no module file at {path}")
        if not os.access(path, os.R_OK):
            raise SourceNotFoundError(token, f"module file {path} is not readable")

        return FileSource(path)

    def _is_importable(self, token: str) -> bool:
        """Check whether a token names an importable package without importing it.

        Only the top-level package is probed; find_spec on a dotted name would
        import its parents.
        """
        if not all(part.isidentifier() for part in token.split(".")):
            return False
        try:
            return importlib.util.find_spec(token.split(".")[0]) is not None
        except (ImportError, ValueError):
            return False

    def __repr__(self) -> str:
        return f"SourceResolver(suffixes={list(self.module_suffixes)})"
