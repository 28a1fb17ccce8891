"""Dumping of objects as YAML text."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

import yaml

from numatopo.quantity import Quantity

logger = logging.getLogger(__name__)


def _to_plain(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_plain(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Enum):
        return _to_plain(obj.value)
    if isinstance(obj, Quantity):
        return str(obj)
    if isinstance(obj, Mapping):
        return {str(key): _to_plain(value) for key, value in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return sorted(_to_plain(item) for item in obj)
    if isinstance(obj, (list, tuple)):
        return [_to_plain(item) for item in obj]
    return obj


def dump(obj: Any) -> str:
    """Return a YAML representation of the object."""
    try:
        out = yaml.safe_dump(_to_plain(obj), default_flow_style=False, sort_keys=True)
    except (yaml.YAMLError, TypeError, ValueError) as err:
        return f"<!!! FAILED TO MARSHAL {type(obj).__name__} ({err}) !!!>\n"
    if out.endswith("\n...\n"):
        out = out[:-4]
    return out


def log_dump(level: int, heading: str, prefix: str, obj: Any) -> None:
    """Log the YAML dump of an object line by line, if the level is enabled."""
    if not logger.isEnabledFor(level):
        return
    if heading:
        logger.log(level, heading, stacklevel=2)
    for line in dump(obj).split("\n")[:-1]:
        logger.log(level, prefix + line, stacklevel=2)