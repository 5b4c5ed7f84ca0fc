"""Pytest configuration for scoped-import tests."""

import textwrap
from pathlib import Path

import pytest

from scoped_import.evaluator import PythonFileEvaluator
from scoped_import.importer import Importer
from scoped_import.importer import set_default_importer
from scoped_import.module_cache import ModuleCache
from scoped_import.resolution.registry import StaticPackageRegistry
from scoped_import.settings import FingerprintMode
from scoped_import.settings import ImportSettings


class CountingEvaluator(PythonFileEvaluator):
    """PythonFileEvaluator that records every evaluation."""

    def __init__(self):
        self.calls: list[Path] = []

    def evaluate(self, path: Path):
        self.calls.append(path)
        return super().evaluate(path)

    def count(self, path: Path) -> int:
        return self.calls.count(path)


@pytest.fixture
def write_module(tmp_path):
    """Write a dedented module file under tmp_path and return its path."""

    def _write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path.resolve()

    return _write


@pytest.fixture
def evaluator():
    return CountingEvaluator()


@pytest.fixture
def registry():
    """Static export tables standing in for installed packages."""
    return StaticPackageRegistry(
        {
            "geometry": {"pi": 3.14159, "tau": 6.28318, "area": lambda r: 3.14159 * r * r},
            "text": {"upper": str.upper, "lower": str.lower},
        }
    )


@pytest.fixture
def importer(evaluator, registry):
    """Fresh importer with hash fingerprints, active as the process default."""
    settings = ImportSettings(fingerprint=FingerprintMode.HASH)
    importer = Importer(
        cache=ModuleCache(evaluator=evaluator, fingerprint=settings.fingerprint),
        registry=registry,
        settings=settings,
    )
    set_default_importer(importer)
    yield importer
    set_default_importer(None)
