"""Import statement parsing.

An import call mixes three kinds of arguments:
- positional names: "name" or a (local, exported) pair
- keyword renames: local="exported"
- reserved options, prefixed with an underscore so they never collide with
  exported names (_from, _into, _here, _scope, _rename, _directory, _all,
  _except, _kind)

parse_statement() validates them up front and returns a typed ImportSpec.
"""

from __future__ import annotations

import keyword
import os
from collections.abc import Mapping
from collections.abc import MutableMapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any
from typing import NamedTuple

from .errors import InvalidImportStatementError
from .resolution.sources import SourceKind

RESERVED_OPTIONS = frozenset(
    {"_from", "_into", "_here", "_scope", "_rename", "_directory", "_all", "_except", "_kind"}
)


class PlacementMode(str, Enum):
    """Where a statement places its bindings."""

    HERE = "here"
    INTO = "into"


class NamePair(NamedTuple):
    """An exported name and the local name it is bound to."""

    exported: str
    local: str


@dataclass(frozen=True)
class ImportSpec:
    """A validated import statement."""

    source: Any
    pairs: tuple[NamePair, ...]
    mode: PlacementMode
    into: str | None = None
    scope: MutableMapping[str, Any] | None = field(default=None, compare=False)
    directory: Path | None = None
    import_all: bool = False
    exclude: tuple[str, ...] = ()
    kind: SourceKind = SourceKind.AUTO

    @property
    def local_names(self) -> list[str]:
        return [pair.local for pair in self.pairs]


def parse_statement(
    args: tuple[Any, ...],
    kwargs: Mapping[str, Any],
    *,
    default_into: str = "imports",
) -> ImportSpec:
    """Validate an import call's arguments.

    Args:
        args: Positional arguments (source first unless _from is given, then names)
        kwargs: Keyword renames and reserved options
        default_into: Destination namespace when neither _into nor _here is given

    Returns:
        ImportSpec

    Raises:
        InvalidImportStatementError: First malformed argument found
    """
    options = {k: v for k, v in kwargs.items() if k.startswith("_")}
    renames = {k: v for k, v in kwargs.items() if not k.startswith("_")}

    for option in options:
        if option not in RESERVED_OPTIONS:
            raise InvalidImportStatementError("Unknown import option", option)

    positional = list(args)
    if "_from" in options:
        source = options["_from"]
    elif positional:
        source = positional.pop(0)
    else:
        raise InvalidImportStatementError("Missing import source")

    if source is None or (isinstance(source, str) and not source.strip()):
        raise InvalidImportStatementError("Import source must not be empty", source)

    mode, into, scope = _parse_placement(options, default_into)

    pairs: list[NamePair] = []
    for item in positional:
        pairs.append(_parse_positional_name(item))

    rename_map = options.get("_rename") or {}
    if not isinstance(rename_map, Mapping):
        raise InvalidImportStatementError("_rename must be a mapping of local name to exported name", rename_map)
    for local, exported in [*rename_map.items(), *renames.items()]:
        pairs.append(_checked_pair(exported, local))

    import_all = options.get("_all", False)
    if not isinstance(import_all, bool):
        raise InvalidImportStatementError("_all must be True or False", import_all)

    exclude = _parse_exclude(options.get("_except"))
    if exclude and not import_all:
        raise InvalidImportStatementError("_except is only meaningful with _all=True", list(exclude))

    if not pairs and not import_all:
        raise InvalidImportStatementError("No names requested (name them, or pass _all=True)")

    return ImportSpec(
        source=source,
        pairs=tuple(pairs),
        mode=mode,
        into=into,
        scope=scope,
        directory=_parse_directory(options.get("_directory")),
        import_all=import_all,
        exclude=exclude,
        kind=parse_kind(options.get("_kind", SourceKind.AUTO)),
    )


def _parse_placement(
    options: Mapping[str, Any], default_into: str
) -> tuple[PlacementMode, str | None, MutableMapping[str, Any] | None]:
    here = options.get("_here", False)
    scope = options.get("_scope")
    into = options.get("_into")

    if not isinstance(here, bool):
        raise InvalidImportStatementError("_here must be True or False", here)
    if scope is not None and not isinstance(scope, MutableMapping):
        raise InvalidImportStatementError("_scope must be a mutable mapping", type(scope).__name__)

    if into is not None and (here or scope is not None):
        raise InvalidImportStatementError("_into cannot be combined with _here or _scope", into)

    if here or scope is not None:
        if scope is None:
            raise InvalidImportStatementError("_here needs a caller scope to write into")
        return PlacementMode.HERE, None, scope

    if into is None:
        into = default_into
    if not isinstance(into, str) or not into.strip():
        raise InvalidImportStatementError("_into must be a non-empty namespace name", into)
    return PlacementMode.INTO, into, None


def _parse_positional_name(item: Any) -> NamePair:
    if isinstance(item, str):
        return _checked_pair(item, item)
    if isinstance(item, tuple) and len(item) == 2:
        local, exported = item
        return _checked_pair(exported, local)
    raise InvalidImportStatementError("Requested names must be strings or (local, exported) pairs", item)


def _checked_pair(exported: Any, local: Any) -> NamePair:
    if not isinstance(exported, str) or not exported:
        raise InvalidImportStatementError("Exported name must be a non-empty string", exported)
    if not exported.isidentifier():
        raise InvalidImportStatementError("Exported name is not a valid identifier", exported)
    if not isinstance(local, str) or not local:
        raise InvalidImportStatementError(f"Local name for '{exported}' must be a non-empty string", local)
    if not local.isidentifier() or keyword.iskeyword(local):
        raise InvalidImportStatementError(f"Local name for '{exported}' is not a valid identifier", local)
    return NamePair(exported=exported, local=local)


def _parse_exclude(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    try:
        names = tuple(value)
    except TypeError:
        raise InvalidImportStatementError("_except must be a name or a list of names", value) from None
    for name in names:
        if not isinstance(name, str) or not name:
            raise InvalidImportStatementError("_except entries must be non-empty strings", name)
    return names


def _parse_directory(value: Any) -> Path | None:
    if value is None:
        return None
    if not isinstance(value, (str, os.PathLike)) or not os.fspath(value):
        raise InvalidImportStatementError("_directory must be a path", value)
    return Path(value).expanduser().resolve()


def parse_kind(value: Any) -> SourceKind:
    try:
        return SourceKind(value)
    except ValueError:
        choices = ", ".join(k.value for k in SourceKind)
        raise InvalidImportStatementError(f"_kind must be one of {choices}", value) from None
