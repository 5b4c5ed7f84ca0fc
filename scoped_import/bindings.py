"""Binding resolution.

Fetches requested names from a source. Package sources go through the
package registry; module files go through the module cache. A batch either
resolves completely or fails with one error naming every missing name.
"""

import logging
from collections.abc import Sequence
from types import ModuleType
from typing import Any

from .errors import NameNotExportedError
from .errors import NameNotFoundInModuleError
from .evaluator import EVALUATOR_BINDINGS
from .module_cache import ModuleCache
from .placement import Namespace
from .resolution.registry import MISSING
from .resolution.registry import PackageRegistry
from .resolution.sources import FileSource
from .resolution.sources import PackageSource

logger = logging.getLogger(__name__)


class BindingResolver:
    """Looks up exported names in packages and module files."""

    def __init__(self, registry: PackageRegistry, cache: ModuleCache):
        self.registry = registry
        self.cache = cache

    def resolve(self, source: FileSource | PackageSource, name: str) -> Any:
        """Resolve a single exported name."""
        return self.resolve_all(source, [name])[0]

    def resolve_all(self, source: FileSource | PackageSource, names: Sequence[str]) -> list[Any]:
        """Resolve names in order.

        Returns:
            Values, positionally matching names

        Raises:
            NameNotExportedError: Package source is missing any of the names
            NameNotFoundInModuleError: Module file is missing any of the names
        """
        if isinstance(source, PackageSource):
            values = [self.registry.get_export(source.identifier, name) for name in names]
            missing = [name for name, value in zip(names, values, strict=True) if value is MISSING]
            if missing:
                raise NameNotExportedError(source.identifier, missing)
        else:
            namespace = self.module_namespace(source)
            values = [_module_binding(namespace, name) for name in names]
            missing = [name for name, value in zip(names, values, strict=True) if value is MISSING]
            if missing:
                raise NameNotFoundInModuleError(source.path, missing)

        logger.debug(f"[import:resolve] {len(names)} names from {source!r}")
        return values

    def exports(self, source: FileSource | PackageSource) -> list[str]:
        """Public names a source offers, in definition order.

        Module files export ``__all__`` when they define it, otherwise every
        binding not starting with an underscore, skipping imported modules.
        """
        if isinstance(source, PackageSource):
            return list(self.registry.list_exports(source.identifier))

        namespace = self.module_namespace(source)
        declared = namespace.get("__all__")
        if declared is not None:
            return [str(name) for name in declared]
        return [
            name
            for name, value in namespace.items()
            if not name.startswith("_") and not isinstance(value, ModuleType)
        ]

    def module_namespace(self, source: FileSource) -> Namespace:
        return self.cache.get_or_load(source.path)

    def __repr__(self) -> str:
        return f"BindingResolver({self.registry!r}, {self.cache!r})"


def _module_binding(namespace: Namespace, name: str) -> Any:
    if name in EVALUATOR_BINDINGS:
        return MISSING
    return namespace.get(name, MISSING)
