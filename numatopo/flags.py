"""Command line flag value types."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Union


class RegexpVal:
    """A regular expression flag value."""

    def __init__(self, pattern: Optional[str] = None):
        self.regexp: Optional[re.Pattern[str]] = (
            re.compile(pattern) if pattern is not None else None
        )

    def set(self, val: str) -> None:
        """Compile and store the expression; keep the old one on error."""
        self.regexp = re.compile(val)

    def unmarshal_json(self, data: Union[str, bytes]) -> None:
        """Set the expression from a JSON string."""
        value = json.loads(data)
        if not isinstance(value, str):
            text = data.decode() if isinstance(data, bytes) else data
            raise ValueError(f"invalid regexp {text}")
        self.regexp = re.compile(value)

    def __str__(self) -> str:
        return self.regexp.pattern if self.regexp is not None else ""


class StringSetVal(set):
    """A set of comma-separated strings."""

    def set(self, val: str) -> None:
        """Replace the content with the comma-separated items of ``val``."""
        self.clear()
        self.update(val.split(","))

    def __str__(self) -> str:
        return ",".join(sorted(self))


class StringSliceVal(list):
    """A list of comma-separated strings."""

    def set(self, val: str) -> None:
        """Replace the content with the comma-separated items of ``val``."""
        self[:] = val.split(",")

    def __str__(self) -> str:
        return ",".join(self)


@dataclass
class Flag:
    """A named flag with its value object and default text."""

    name: str
    value: Any
    def_value: str = ""


_BACKTRACE_FLAG = "log_backtrace_at"
_BACKTRACE_EMPTY = ":0"


class LogFlagVal:
    """Wraps a logging flag so that it can be set from a config file too."""

    def __init__(self, flag: Optional[Flag] = None):
        self.flag = flag
        self._set_from_cmdline = False

    def _require_flag(self) -> Flag:
        if self.flag is None:
            raise ValueError("no flag is wrapped")
        return self.flag

    def set(self, value: str) -> None:
        """Set the value and mark it as given on the command line."""
        self._set_from_cmdline = True
        self._require_flag().value.set(value)

    def __str__(self) -> str:
        if self.flag is None:
            return ""
        text = str(self.flag.value)
        if self.flag.name == _BACKTRACE_FLAG and text == _BACKTRACE_EMPTY:
            return ""
        return text

    def def_value(self) -> str:
        """Return the default value as text."""
        flag = self._require_flag()
        if flag.name == _BACKTRACE_FLAG and flag.def_value == _BACKTRACE_EMPTY:
            return ""
        return flag.def_value

    def set_from_config(self, value: str) -> None:
        """Set the value without marking it as given on the command line."""
        self._require_flag().value.set(value)

    def is_set_from_cmdline(self) -> bool:
        """Tell whether the value was given on the command line."""
        return self._set_from_cmdline

    def is_bool_flag(self) -> bool:
        """Tell whether the wrapped flag is a boolean flag."""
        check = getattr(self._require_flag().value, "is_bool_flag", None)
        return bool(check()) if callable(check) else False