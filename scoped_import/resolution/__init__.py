"""Source resolution.

This package classifies source tokens and provides the package export
registries the binding resolver consults.
"""

from .registry import MISSING
from .registry import InstalledPackageRegistry
from .registry import PackageRegistry
from .registry import StaticPackageRegistry
from .resolvers import SourceResolver
from .sources import FileSource
from .sources import PackageSource
from .sources import Source
from .sources import SourceKind

__all__ = [
    "FileSource",
    "InstalledPackageRegistry",
    "MISSING",
    "PackageRegistry",
    "PackageSource",
    "Source",
    "SourceKind",
    "SourceResolver",
    "StaticPackageRegistry",
]
