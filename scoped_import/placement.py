"""Scope placement - where resolved bindings are written.

Destinations:
- Here: a caller-owned mapping (the caller's module namespace by default)
- Into: a registered Namespace held by the SearchChain, created on first use

The search chain is an ordered registry only; name lookup through it is the
host's business (see SearchChain.as_chainmap).
"""

from __future__ import annotations

import logging
import threading
from collections import ChainMap
from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from collections.abc import MutableMapping
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from typing import NamedTuple

from .errors import DuplicateLocalNameError
from .statement import NamePair

logger = logging.getLogger(__name__)


class Namespace(MutableMapping[str, Any]):
    """Ordered, lockable mapping of names to values.

    Bindings are also readable as attributes (``ns.name``).
    """

    def __init__(self, name: str, bindings: Mapping[str, Any] | None = None):
        self.name = name
        self._bindings: dict[str, Any] = dict(bindings or {})
        self.lock = threading.RLock()

    def __getitem__(self, key: str) -> Any:
        return self._bindings[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._bindings[key] = value

    def __delitem__(self, key: str) -> None:
        del self._bindings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __getattr__(self, key: str) -> Any:
        if key.startswith("_"):
            raise AttributeError(key)
        try:
            return self._bindings[key]
        except KeyError:
            raise AttributeError(f"Namespace '{self.name}' has no binding '{key}'") from None

    def __repr__(self) -> str:
        return f"Namespace({self.name!r}, {list(self._bindings)})"


class SearchChain:
    """Ordered registry of named namespaces.

    New namespaces are attached at the front. A namespace keeps its place
    relative to the others once attached; attaching an existing name returns
    the registered instance instead of inserting a second one.
    """

    def __init__(self) -> None:
        self._namespaces: list[Namespace] = []
        self._lock = threading.Lock()

    def attach(self, name: str) -> Namespace:
        """Get the namespace registered under name, registering it if absent."""
        with self._lock:
            for namespace in self._namespaces:
                if namespace.name == name:
                    return namespace
            namespace = Namespace(name)
            self._namespaces.insert(0, namespace)
        logger.debug(f"[import:place] attached namespace '{name}'")
        return namespace

    def get(self, name: str) -> Namespace | None:
        with self._lock:
            for namespace in self._namespaces:
                if namespace.name == name:
                    return namespace
        return None

    def detach(self, name: str) -> Namespace:
        """Remove a registered namespace from the chain.

        Raises:
            KeyError: Nothing is registered under name
        """
        with self._lock:
            for index, namespace in enumerate(self._namespaces):
                if namespace.name == name:
                    del self._namespaces[index]
                    break
            else:
                raise KeyError(f"No namespace '{name}' in search chain")
        logger.debug(f"[import:place] detached namespace '{name}'")
        return namespace

    def names(self) -> list[str]:
        """Registered names, front to back."""
        with self._lock:
            return [ns.name for ns in self._namespaces]

    def as_chainmap(self) -> ChainMap[str, Any]:
        """Live lookup view over the registered namespaces, front first."""
        with self._lock:
            return ChainMap(*self._namespaces)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[Namespace]:
        with self._lock:
            return iter(list(self._namespaces))

    def __len__(self) -> int:
        with self._lock:
            return len(self._namespaces)

    def __repr__(self) -> str:
        return f"SearchChain({self.names()})"


@dataclass(frozen=True, eq=False)
class Here:
    """Write into a caller-owned mapping."""

    scope: MutableMapping[str, Any]

    def __str__(self) -> str:
        return "caller scope"


@dataclass(frozen=True)
class Into:
    """Write into the registered namespace of this name."""

    name: str

    def __str__(self) -> str:
        return f"namespace '{self.name}'"


Destination = Here | Into


class Binding(NamedTuple):
    """A resolved value and the names it travels under."""

    local: str
    exported: str
    value: Any


def check_local_names(pairs: Iterable[NamePair]) -> list[NamePair]:
    """Reject statements mapping different exports onto one local name.

    Identical repeated pairs are collapsed; order of first appearance is kept.

    Raises:
        DuplicateLocalNameError: A local name is bound to two different exports
    """
    seen: dict[str, NamePair] = {}
    unique: list[NamePair] = []
    for pair in pairs:
        previous = seen.get(pair.local)
        if previous is None:
            seen[pair.local] = pair
            unique.append(pair)
        elif previous.exported != pair.exported:
            raise DuplicateLocalNameError(pair.local, [previous.exported, pair.exported])
    return unique


class ScopePlacer:
    """Writes bindings into their destination."""

    def __init__(self, chain: SearchChain):
        self.chain = chain

    def place(self, bindings: Sequence[Binding], destination: Destination) -> MutableMapping[str, Any]:
        """Write every binding into the destination, last write wins.

        Args:
            bindings: Resolved bindings in statement order
            destination: Here or Into

        Returns:
            The mapping that was written to

        Raises:
            DuplicateLocalNameError: Two bindings share a local name but not an export
        """
        check_local_names(NamePair(b.exported, b.local) for b in bindings)

        if isinstance(destination, Here):
            target = destination.scope
            for binding in bindings:
                target[binding.local] = binding.value
            logger.debug(f"[import:place] {len(bindings)} bindings -> caller scope")
            return target

        namespace = self.chain.attach(destination.name)
        with namespace.lock:
            for binding in bindings:
                namespace[binding.local] = binding.value
        logger.debug(f"[import:place] {len(bindings)} bindings -> '{destination.name}'")
        return namespace
