"""Selective imports from packages and module files.

Pull named bindings from an installed package or from another script file
without attaching everything the source defines:

    import scoped_import as si

    si.import_from("./helpers.py", "slugify", ("tz", "timezone"))
    si.import_into("stats", "statistics", "mean", "median")
    si.import_here("json", "dumps")

Module files are evaluated at most once per distinct content. Names land in
a registered namespace of the search chain ("imports" unless stated) or, with
import_here, in the caller's module namespace.
"""

from pathlib import Path
from typing import Any

from .errors import AmbiguousSourceError
from .errors import CyclicImportError
from .errors import DuplicateLocalNameError
from .errors import EvaluationError
from .errors import InvalidImportStatementError
from .errors import NameNotExportedError
from .errors import NameNotFoundInModuleError
from .errors import ScopedImportError
from .errors import SourceNotFoundError
from .importer import Importer
from .importer import current_importer
from .importer import get_default_importer
from .importer import set_default_importer
from .module_cache import ModuleCache
from .placement import Namespace
from .placement import SearchChain
from .resolution import FileSource
from .resolution import InstalledPackageRegistry
from .resolution import PackageSource
from .resolution import StaticPackageRegistry
from .settings import FingerprintMode
from .settings import ImportSettings

__version__ = "0.3.0"


def import_from(*args: Any, **kwargs: Any) -> None:
    """Import names from a source into a registered namespace (see Importer.import_from)."""
    current_importer().import_from(*args, **kwargs)


def import_into(destination: str, *args: Any, **kwargs: Any) -> None:
    """Import names from a source into the named registered namespace."""
    current_importer().import_into(destination, *args, **kwargs)


def import_here(*args: Any, **kwargs: Any) -> None:
    """Import names from a source into the caller's module namespace."""
    current_importer().import_here(*args, **kwargs)


def what(source: Any, **kwargs: Any) -> list[str]:
    """List the names a source exports."""
    return current_importer().what(source, **kwargs)


def clear_cache(path: str | Path | None = None) -> int:
    """Forget cached module evaluations (one file, or all)."""
    return current_importer().clear_cache(path)


__all__ = [
    "AmbiguousSourceError",
    "CyclicImportError",
    "DuplicateLocalNameError",
    "EvaluationError",
    "FileSource",
    "FingerprintMode",
    "ImportSettings",
    "Importer",
    "InstalledPackageRegistry",
    "InvalidImportStatementError",
    "ModuleCache",
    "NameNotExportedError",
    "NameNotFoundInModuleError",
    "Namespace",
    "PackageSource",
    "ScopedImportError",
    "SearchChain",
    "SourceNotFoundError",
    "StaticPackageRegistry",
    "clear_cache",
    "current_importer",
    "get_default_importer",
    "import_from",
    "import_here",
    "import_into",
    "set_default_importer",
    "what",
]
