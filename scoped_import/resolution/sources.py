"""Import source types.

Concrete source kinds an import statement can name:
- FileSource: A module file on the local filesystem
- PackageSource: An installed package's export table
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class SourceKind(str, Enum):
    """Explicit source classification requested by a statement."""

    AUTO = "auto"
    PACKAGE = "package"
    FILE = "file"


@dataclass(frozen=True)
class FileSource:
    """Module file source, identified by its canonical absolute path."""

    path: Path

    def __str__(self) -> str:
        return str(self.path)

    def __repr__(self) -> str:
        return f"FileSource({self.path})"


@dataclass(frozen=True)
class PackageSource:
    """Installed package source, identified by its registry key."""

    identifier: str

    def __str__(self) -> str:
        return self.identifier

    def __repr__(self) -> str:
        return f"PackageSource({self.identifier})"


Source = FileSource | PackageSource
