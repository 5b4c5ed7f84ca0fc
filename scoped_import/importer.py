"""The import engine.

Importer ties the pieces together for one process-scoped state (module
cache, search chain, package registry, settings):

    statement -> ImportSpec -> Source -> values -> destination

Statements are atomic: every binding is resolved before any is written.

Module files evaluated by an importer see it as the active importer, so the
module-level functions in scoped_import (import_from and friends) called
from inside a module use the same state.

Relative module paths resolve against the directory of the file issuing the
statement, found by walking out of this package's frames.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Iterator
from collections.abc import MutableMapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .bindings import BindingResolver
from .errors import EvaluationError
from .errors import InvalidImportStatementError
from .errors import ScopedImportError
from .errors import SourceNotFoundError
from .module_cache import ModuleCache
from .placement import Binding
from .placement import Here
from .placement import Into
from .placement import ScopePlacer
from .placement import SearchChain
from .placement import check_local_names
from .resolution.registry import InstalledPackageRegistry
from .resolution.registry import PackageRegistry
from .resolution.resolvers import SourceResolver
from .resolution.sources import FileSource
from .resolution.sources import PackageSource
from .resolution.sources import SourceKind
from .settings import ImportSettings
from .settings import load_settings
from .statement import ImportSpec
from .statement import NamePair
from .statement import PlacementMode
from .statement import parse_kind
from .statement import parse_statement

logger = logging.getLogger(__name__)

_active = threading.local()
_default_importer: Importer | None = None
_default_lock = threading.Lock()


class Importer:
    """Selective import engine over explicit process-scoped state."""

    def __init__(
        self,
        cache: ModuleCache | None = None,
        chain: SearchChain | None = None,
        registry: PackageRegistry | None = None,
        settings: ImportSettings | None = None,
        source_resolver: SourceResolver | None = None,
    ):
        """Initialize the engine.

        Args:
            cache: Module cache (new one, using settings.fingerprint, if None)
            chain: Search chain for registered namespaces (new one if None)
            registry: Package export registry (installed packages if None)
            settings: Engine settings (defaults if None)
            source_resolver: Source classifier (built from settings if None)
        """
        self.settings = settings or ImportSettings()
        self.cache = cache or ModuleCache(fingerprint=self.settings.fingerprint)
        self.chain = chain or SearchChain()
        self.registry = registry or InstalledPackageRegistry()
        self.sources = source_resolver or SourceResolver(self.settings.module_suffixes)
        self.bindings = BindingResolver(self.registry, self.cache)
        self.placer = ScopePlacer(self.chain)

    def import_from(self, *args: Any, **kwargs: Any) -> None:
        """Import names from a source into a registered namespace.

        ``import_from(source, "a", ("b2", "b"), c2="c", _into="ns")``

        With ``_here=True`` the names go to the caller's module namespace
        instead (or to ``_scope`` when given).
        """
        caller = _caller_globals()
        if kwargs.get("_here") is True and "_scope" not in kwargs:
            kwargs["_scope"] = caller
        spec = parse_statement(args, kwargs, default_into=self.settings.default_into)
        self.execute(spec, origin=_origin_of(caller))

    def import_into(self, destination: str, *args: Any, **kwargs: Any) -> None:
        """Same as import_from with the destination namespace first."""
        if "_into" in kwargs:
            raise InvalidImportStatementError("Destination given twice (positional and _into)", kwargs["_into"])
        if "_here" in kwargs or "_scope" in kwargs:
            raise InvalidImportStatementError("import_into cannot place into the caller scope")
        kwargs["_into"] = destination
        spec = parse_statement(args, kwargs, default_into=self.settings.default_into)
        self.execute(spec, origin=_origin_of(_caller_globals()))

    def import_here(self, *args: Any, **kwargs: Any) -> None:
        """Import names into the caller's module namespace (or ``_scope``)."""
        if "_into" in kwargs:
            raise InvalidImportStatementError("import_here cannot place into a registered namespace", kwargs["_into"])
        caller = _caller_globals()
        if "_scope" not in kwargs:
            kwargs["_scope"] = caller
        kwargs["_here"] = True
        spec = parse_statement(args, kwargs, default_into=self.settings.default_into)
        self.execute(spec, origin=_origin_of(caller))

    def execute(self, spec: ImportSpec, origin: Path | None = None) -> MutableMapping[str, Any]:
        """Run a parsed statement.

        Args:
            spec: Parsed statement
            origin: Directory of the file issuing the statement, if known

        Returns:
            The mapping the bindings were written to

        Raises:
            ScopedImportError: Any resolution or placement failure; nothing
                               has been written when it is raised
        """
        check_local_names(spec.pairs)
        source = self.resolve_source(spec.source, directory=spec.directory, kind=spec.kind, origin=origin)

        with self.activated():
            pairs = self._requested_pairs(spec, source)
            values = self.bindings.resolve_all(source, [pair.exported for pair in pairs])

        bindings = [
            Binding(local=pair.local, exported=pair.exported, value=value)
            for pair, value in zip(pairs, values, strict=True)
        ]
        destination = Here(spec.scope) if spec.mode is PlacementMode.HERE else Into(spec.into)
        logger.debug(
            f"[import:statement] {[b.local for b in bindings]} from {source!r} -> {destination}",
            extra={"source": str(source), "destination": str(destination), "names": [b.local for b in bindings]},
        )
        return self.placer.place(bindings, destination)

    def resolve_source(
        self,
        token: Any,
        directory: Path | None = None,
        kind: SourceKind = SourceKind.AUTO,
        origin: Path | None = None,
    ) -> FileSource | PackageSource:
        """Classify a source token relative to the current base directory."""
        return self.sources.resolve(token, base_dir=self.base_directory(directory, origin), kind=kind)

    def base_directory(self, directory: Path | None = None, origin: Path | None = None) -> Path:
        """Directory relative module paths resolve against.

        Resolution order (first match wins):
        1. Explicit directory from the statement
        2. Directory of the file issuing the statement
        3. Directory of the module file currently being loaded
        4. Working directory (interactive sessions, ``python -c``)
        """
        if directory is not None:
            return directory
        if origin is not None:
            return origin
        if current := self.cache.current_module():
            return current.parent
        return Path.cwd()

    def what(self, source: Any, directory: Path | None = None, kind: SourceKind | str = SourceKind.AUTO) -> list[str]:
        """List the names a source exports."""
        resolved = self.resolve_source(
            source, directory=directory, kind=parse_kind(kind), origin=_origin_of(_caller_globals())
        )
        with self.activated():
            return self.bindings.exports(resolved)

    def clear_cache(self, path: str | Path | None = None) -> int:
        """Invalidate one module (relative to the caller's directory) or all modules.

        Returns:
            Number of entries removed
        """
        if path is None:
            return self.cache.clear()
        resolved = Path(path).expanduser()
        if not resolved.is_absolute():
            resolved = self.base_directory(origin=_origin_of(_caller_globals())) / resolved
        return int(self.cache.invalidate(resolved.resolve()))

    def run_script(self, path: str | Path) -> dict[str, Any]:
        """Evaluate a script with this importer active.

        The script is not cached; imports it performs resolve relative to its
        directory.

        Returns:
            The script's globals after execution

        Raises:
            EvaluationError: The script raised
        """
        script = Path(path).expanduser().resolve()
        if not script.is_file():
            raise SourceNotFoundError(str(path), f"no script at {script}")

        with self.activated(), self.cache.loading(script):
            try:
                return dict(self.cache.evaluator.evaluate(script))
            except ScopedImportError:
                raise
            except Exception as e:
                raise EvaluationError(script, e) from e

    @contextmanager
    def activated(self) -> Iterator[Importer]:
        """Make this the importer module-level functions use on this thread."""
        stack = _active_stack()
        stack.append(self)
        try:
            yield self
        finally:
            stack.pop()

    def _requested_pairs(self, spec: ImportSpec, source: FileSource | PackageSource) -> list[NamePair]:
        """Explicit pairs, then every public export not already claimed when _all is set."""
        pairs = check_local_names(spec.pairs)
        if not spec.import_all:
            return pairs

        claimed_exports = {pair.exported for pair in pairs}
        claimed_locals = {pair.local for pair in pairs}
        excluded = set(spec.exclude)
        for name in self.bindings.exports(source):
            if name in excluded or name in claimed_exports or name in claimed_locals:
                continue
            pairs.append(NamePair(exported=name, local=name))
        return pairs

    def __repr__(self) -> str:
        return f"Importer({self.cache!r}, {self.chain!r}, {self.registry!r})"


def _active_stack() -> list[Importer]:
    stack = getattr(_active, "stack", None)
    if stack is None:
        stack = _active.stack = []
    return stack


def get_default_importer() -> Importer:
    """Process default importer, configured from the standard settings files."""
    global _default_importer
    with _default_lock:
        if _default_importer is None:
            _default_importer = Importer(settings=load_settings())
        return _default_importer


def set_default_importer(importer: Importer | None) -> None:
    """Replace the process default importer (None resets it)."""
    global _default_importer
    with _default_lock:
        _default_importer = importer


def current_importer() -> Importer:
    """Importer currently evaluating a module on this thread, else the default."""
    stack = _active_stack()
    return stack[-1] if stack else get_default_importer()


# Frames of these modules are call plumbing, not the code issuing a statement
_ENTRY_MODULES = frozenset({"scoped_import", __name__})


def _caller_globals() -> dict[str, Any]:
    """Globals of the nearest frame outside the scoped_import entry points."""
    frame = sys._getframe(1)
    while frame is not None and frame.f_globals.get("__name__") in _ENTRY_MODULES:
        frame = frame.f_back
    return frame.f_globals if frame is not None else {}


def _origin_of(caller: dict[str, Any]) -> Path | None:
    """Directory of the file a frame's globals belong to.

    None for code with no backing file (REPL, ``python -c``, exec of a string).
    """
    file = caller.get("__file__")
    if not isinstance(file, str) or not file or file.startswith("<"):
        return None
    return Path(file).expanduser().resolve().parent
