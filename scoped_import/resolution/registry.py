"""Package export registries.

A registry answers two questions about a package: which names it exports,
and the value bound to one exported name. The import engine treats it as an
opaque collaborator; hosts can mount their own implementation.
"""

import importlib
import logging
from collections.abc import Iterable
from collections.abc import Mapping
from types import ModuleType
from typing import Any
from typing import Protocol

from ..errors import SourceNotFoundError

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel returned by registries for absent or unexported names."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class PackageRegistry(Protocol):
    """Source of package export tables."""

    def list_exports(self, package_id: str) -> list[str]:
        """Exported names of a package, in definition order."""
        ...

    def get_export(self, package_id: str, name: str) -> Any:
        """Value of an exported name, or MISSING."""
        ...


class InstalledPackageRegistry:
    """Export tables of importable Python packages.

    A package's exports are its ``__all__`` when defined. Otherwise they are
    its public attributes, skipping modules it merely imported (submodules of
    the package itself still count).
    """

    def list_exports(self, package_id: str) -> list[str]:
        module = self._load(package_id)
        declared = getattr(module, "__all__", None)
        if declared is not None:
            return [str(name) for name in declared]
        return [
            name
            for name, value in vars(module).items()
            if not name.startswith("_") and not _is_foreign_module(value, package_id)
        ]

    def get_export(self, package_id: str, name: str) -> Any:
        if name not in self.list_exports(package_id):
            return MISSING

        module = self._load(package_id)
        value = getattr(module, name, MISSING)
        if value is MISSING:
            # __all__ may list submodules that are not imported yet
            try:
                value = importlib.import_module(f"{package_id}.{name}")
            except ModuleNotFoundError:
                return MISSING
        return value

    def _load(self, package_id: str) -> ModuleType:
        """Import a package, mapping "not installed" onto SourceNotFoundError.

        Other import-time failures of the package propagate unchanged.
        """
        try:
            return importlib.import_module(package_id)
        except ModuleNotFoundError as e:
            missing = e.name or ""
            if missing == package_id or package_id.startswith(f"{missing}."):
                raise SourceNotFoundError(package_id, "package is not installed") from e
            raise

    def __repr__(self) -> str:
        return "InstalledPackageRegistry()"


class StaticPackageRegistry:
    """In-memory export tables, for embedding hosts and tests."""

    def __init__(self, tables: Mapping[str, Mapping[str, Any]] | None = None):
        self._tables: dict[str, dict[str, Any]] = {k: dict(v) for k, v in (tables or {}).items()}

    def register(self, package_id: str, exports: Mapping[str, Any]) -> None:
        """Add or replace a package's export table."""
        self._tables[package_id] = dict(exports)
        logger.debug(f"[import:registry] registered {package_id} ({len(exports)} exports)")

    def packages(self) -> Iterable[str]:
        return list(self._tables)

    def list_exports(self, package_id: str) -> list[str]:
        return list(self._table(package_id))

    def get_export(self, package_id: str, name: str) -> Any:
        return self._table(package_id).get(name, MISSING)

    def _table(self, package_id: str) -> dict[str, Any]:
        if package_id not in self._tables:
            raise SourceNotFoundError(package_id, "package is not registered")
        return self._tables[package_id]

    def __repr__(self) -> str:
        return f"StaticPackageRegistry({sorted(self._tables)})"


def _is_foreign_module(value: Any, package_id: str) -> bool:
    return isinstance(value, ModuleType) and not value.__name__.startswith(f"{package_id}.")
