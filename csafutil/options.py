"""Command line options merged with configuration files in TOML."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import os
import sys
import tomllib
import types
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Generic, Optional, TypeVar, Union, get_args, get_origin

SEM_VERSION = "0.0.0"

C = TypeVar("C")

_POSITIONAL = "__positional__"

_logger = logging.getLogger(__name__)

_NAMED_TYPES: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "bytes": bytes,
    "None": type(None),
    "NoneType": type(None),
    "Any": Any,
    "typing.Any": Any,
    "list": list,
    "List": list,
    "typing.List": list,
    "dict": dict,
    "Dict": dict,
    "typing.Dict": dict,
}


class _ArgumentParser(argparse.ArgumentParser):
    """Raises on bad arguments instead of exiting."""

    def error(self, message: str) -> Any:
        sys.stderr.write(f"{self.prog}: error: {message}\n")
        raise ValueError(message)


def _expand_home(path: str) -> str:
    if not path.startswith("~"):
        return path
    if len(path) > 1 and path[1] not in "/\\":
        raise ValueError("cannot expand user-specific home dir")
    return os.path.expanduser("~") + path[1:]


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _split_top(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` outside of square brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts


def _resolve_annotation(text: str) -> Any:
    """Turn a postponed annotation string into a type for the common cases."""
    text = text.strip().strip("'\"")
    parts = _split_top(text, "|")
    if len(parts) > 1:
        return Union[tuple(_resolve_annotation(part) for part in parts)]
    if text.endswith("]") and "[" in text:
        head, _, inner = text[:-1].partition("[")
        head = head.strip()
        args = [_resolve_annotation(arg) for arg in _split_top(inner, ",")]
        if head in ("Optional", "typing.Optional"):
            return Optional[args[0]]
        if head in ("Union", "typing.Union"):
            return Union[tuple(args)]
        if _NAMED_TYPES.get(head) is list:
            return list[args[0]]
        if _NAMED_TYPES.get(head) is dict:
            return dict
        return Any
    return _NAMED_TYPES.get(text, Any)


def _field_hints(cls: type[Any]) -> dict[str, Any]:
    return {
        f.name: _resolve_annotation(f.type) if isinstance(f.type, str) else f.type
        for f in fields(cls)
    }


def _is_union(hint: Any) -> bool:
    return get_origin(hint) in (Union, types.UnionType)


def _strip_optional(hint: Any) -> Any:
    if _is_union(hint):
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _scalar_converter(hint: Any) -> Callable[[str], Any]:
    return hint if hint in (int, float, str) else str


def _all_keys(table: dict[str, Any], prefix: tuple[str, ...]) -> Iterator[str]:
    for key, value in table.items():
        path = (*prefix, key)
        yield ".".join(path)
        if isinstance(value, dict):
            yield from _all_keys(value, path)


def _type_error(value: Any, path: tuple[str, ...], hint: Any) -> ValueError:
    return ValueError(f"toml: cannot load {value!r} into {'.'.join(path)} of type {hint}")


def _coerce_type(hint: Any, value: Any, path: tuple[str, ...], undecoded: list[str]) -> Any:
    if hint is Any:
        return value
    if _is_union(hint):
        for arg in get_args(hint):
            if arg is type(None):
                continue
            try:
                return _coerce_type(arg, value, path, undecoded)
            except ValueError:
                continue
        raise _type_error(value, path, hint)
    origin = get_origin(hint)
    if origin is list:
        if not isinstance(value, list):
            raise _type_error(value, path, hint)
        (elem,) = get_args(hint) or (Any,)
        return [_coerce_type(elem, item, path, undecoded) for item in value]
    if origin is dict:
        if not isinstance(value, dict):
            raise _type_error(value, path, hint)
        return dict(value)
    if is_dataclass(hint) and isinstance(hint, type):
        if not isinstance(value, dict):
            raise _type_error(value, path, hint)
        return _decode(hint, value, path, undecoded)
    if hint is bool:
        if isinstance(value, bool):
            return value
    elif hint is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif hint is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif isinstance(hint, type) and isinstance(value, hint):
        return value
    raise _type_error(value, path, hint)


def _decode(
    cls: type[Any], table: dict[str, Any], prefix: tuple[str, ...], undecoded: list[str]
) -> Any:
    hints = _field_hints(cls)
    by_key = {
        f.metadata.get("toml", f.name).lower(): f for f in fields(cls) if f.init
    }
    values: dict[str, Any] = {}
    for key, value in table.items():
        path = (*prefix, key)
        f = by_key.get(key.lower())
        if f is None:
            undecoded.extend(_all_keys({key: value}, prefix))
            continue
        convert = f.metadata.get("type")
        if convert is not None and isinstance(value, str):
            values[f.name] = convert(value)
        else:
            values[f.name] = _coerce_type(hints[f.name], value, path, undecoded)
    try:
        return cls(**values)
    except TypeError as err:
        raise ValueError(f"toml: cannot build {cls.__name__}: {err}") from err


def load_toml(config_type: type[C], path: str | os.PathLike[str]) -> C:
    """Load a configuration dataclass from a TOML file.

    Keys match field names (or a field's 'toml' metadata) ignoring case;
    keys that match nothing are an error.
    """
    with open(path, "rb") as f:
        table = tomllib.load(f)
    undecoded: list[str] = []
    config = _decode(config_type, table, (), undecoded)
    if undecoded:
        keys = " ".join(_quote(key) for key in undecoded)
        raise ValueError(f"could not parse [{keys}] from {_quote(os.fspath(path))}")
    return config


def find_config_file(locations: Iterable[str]) -> str:
    """Return the first existing location, with '~' expanded, or ''."""
    for location in locations:
        try:
            name = _expand_home(location)
        except ValueError as err:
            _logger.warning("warn: %s", err)
            continue
        try:
            os.stat(name)
        except OSError:
            continue
        return name
    return ""


def error_check(err: BaseException | None) -> None:
    """Terminate the program with status 1 if ``err`` is set."""
    if err is not None:
        print(f"error: {err}", file=sys.stderr)
        raise SystemExit(1)


def _call_hook(hook: Callable[[C], C | None] | None, config: C) -> C:
    if hook is None:
        return config
    result = hook(config)
    return config if result is None else result


@dataclass
class Parser(Generic[C]):
    """Parses command line options into a configuration dataclass.

    Options come from the dataclass fields: booleans become switches, lists
    repeatable options. Field metadata may set 'long', 'short', 'description',
    'type' (a converter from str) and 'toml' (the key in configuration files).
    If a configuration file is named or found, it is loaded and the options
    given on the command line override its values.
    """

    config_type: type[C]
    default_config_locations: Sequence[str] = ()
    usage: str = ""
    set_defaults: Callable[[C], C | None] | None = None
    ensure_defaults: Callable[[C], C | None] | None = None
    has_version: Callable[[C], bool] | None = None
    config_location: Callable[[C], str] | None = None
    prog: str | None = field(default=None, kw_only=True)

    def _build(self) -> _ArgumentParser:
        parser = _ArgumentParser(
            prog=self.prog,
            usage=f"%(prog)s {self.usage}" if self.usage else None,
            allow_abbrev=False,
        )
        hints = _field_hints(self.config_type)
        for f in fields(self.config_type):
            if not f.init or f.metadata.get("flag", True) is False:
                continue
            names = [f"--{f.metadata.get('long', f.name.replace('_', '-'))}"]
            if f.metadata.get("short"):
                names.insert(0, f"-{f.metadata['short']}")
            kwargs: dict[str, Any] = {
                "dest": f.name,
                "default": argparse.SUPPRESS,
                "help": f.metadata.get("description"),
            }
            hint = _strip_optional(hints[f.name])
            if hint is bool:
                kwargs["action"] = "store_true"
            else:
                convert = f.metadata.get("type")
                if get_origin(hint) is list:
                    kwargs["action"] = "append"
                    elem = (get_args(hint) or (str,))[0]
                    convert = convert or _scalar_converter(elem)
                else:
                    convert = convert or _scalar_converter(hint)
                kwargs["type"] = convert
                kwargs["metavar"] = f.name.upper()
            parser.add_argument(*names, **kwargs)
        parser.add_argument(_POSITIONAL, nargs="*", metavar="ARG", default=[])
        return parser

    def parse(self, argv: Sequence[str] | None = None) -> tuple[list[str], C]:
        """Parse ``argv`` (default: the process arguments) and load the configuration.

        Returns the positional arguments and the configuration. Exits with
        status 0 after printing help or, if requested, the version.
        """
        if argv is None:
            argv = sys.argv[1:]
        namespace = vars(self._build().parse_intermixed_args(list(argv)))
        args = list(namespace.pop(_POSITIONAL, []))

        config = _call_hook(self.set_defaults, self.config_type())
        config = dataclasses.replace(config, **namespace)

        if self.has_version is not None and self.has_version(config):
            print(SEM_VERSION)
            raise SystemExit(0)

        path = self.config_location(config) if self.config_location is not None else ""
        if not path and self.default_config_locations:
            path = find_config_file(self.default_config_locations)
        if not path:
            return args, config

        path = _expand_home(os.fspath(path))
        file_config = dataclasses.replace(load_toml(self.config_type, path), **namespace)
        file_config = _call_hook(self.ensure_defaults, file_config)
        return args, file_config