"""Tests for binding resolution from packages and module files."""

import pytest

from scoped_import.bindings import BindingResolver
from scoped_import.errors import NameNotExportedError
from scoped_import.errors import NameNotFoundInModuleError
from scoped_import.module_cache import ModuleCache
from scoped_import.resolution.sources import FileSource
from scoped_import.resolution.sources import PackageSource


@pytest.fixture
def resolver(registry, evaluator):
    return BindingResolver(registry, ModuleCache(evaluator=evaluator))


class TestPackageSource:
    def test_resolve(self, resolver):
        assert resolver.resolve(PackageSource("geometry"), "pi") == 3.14159

    def test_resolve_all_in_order(self, resolver):
        values = resolver.resolve_all(PackageSource("geometry"), ["tau", "pi"])
        assert values == [6.28318, 3.14159]

    def test_missing_names_aggregated(self, resolver):
        with pytest.raises(NameNotExportedError) as exc_info:
            resolver.resolve_all(PackageSource("geometry"), ["pi", "nope", "tau", "also_nope"])

        assert exc_info.value.names == ["nope", "also_nope"]
        assert exc_info.value.source == "geometry"
        assert "nope, also_nope" in str(exc_info.value)

    def test_exports(self, resolver):
        assert resolver.exports(PackageSource("text")) == ["upper", "lower"]


class TestFileSource:
    def test_resolve(self, resolver, write_module):
        path = write_module("mod.py", "def double(x):\n    return 2 * x\n")
        assert resolver.resolve(FileSource(path), "double")(4) == 8

    def test_missing_names_aggregated(self, resolver, write_module):
        path = write_module("mod.py", "a = 1\n")

        with pytest.raises(NameNotFoundInModuleError) as exc_info:
            resolver.resolve_all(FileSource(path), ["a", "b", "c"])

        assert exc_info.value.names == ["b", "c"]
        assert exc_info.value.path == path

    def test_evaluator_bindings_are_not_importable(self, resolver, write_module):
        path = write_module("mod.py", "a = 1\n")
        with pytest.raises(NameNotFoundInModuleError):
            resolver.resolve(FileSource(path), "__file__")

    def test_module_dunders_are_importable(self, resolver, write_module):
        path = write_module("mod.py", "__version__ = '2.0'\n")
        assert resolver.resolve(FileSource(path), "__version__") == "2.0"

    def test_private_names_importable_explicitly(self, resolver, write_module):
        path = write_module("mod.py", "_helper = 'private'\n")
        assert resolver.resolve(FileSource(path), "_helper") == "private"

    def test_exports_public_names(self, resolver, write_module):
        path = write_module(
            "mod.py",
            """
            import os

            _private = 1
            alpha = 1

            def beta():
                pass
            """,
        )
        assert resolver.exports(FileSource(path)) == ["alpha", "beta"]

    def test_exports_honor_all(self, resolver, write_module):
        path = write_module("mod.py", "__all__ = ['b']\na = 1\nb = 2\n")
        assert resolver.exports(FileSource(path)) == ["b"]

    def test_batch_loads_module_once(self, resolver, evaluator, write_module):
        path = write_module("mod.py", "a = 1\nb = 2\n")

        resolver.resolve(FileSource(path), "a")
        resolver.resolve_all(FileSource(path), ["a", "b"])
        resolver.exports(FileSource(path))

        assert evaluator.count(path) == 1
