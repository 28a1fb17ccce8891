"""Resource quantities in the Kubernetes notation."""

from __future__ import annotations

import functools
import re
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Union

DECIMAL_EXPONENT = "DecimalExponent"
BINARY_SI = "BinarySI"
DECIMAL_SI = "DecimalSI"

_FORMATS = (DECIMAL_EXPONENT, BINARY_SI, DECIMAL_SI)

_BINARY_SUFFIXES = {"Ki": 1, "Mi": 2, "Gi": 3, "Ti": 4, "Pi": 5, "Ei": 6}
_BINARY_BY_POWER = {power: suffix for suffix, power in _BINARY_SUFFIXES.items()}
_BINARY_BY_POWER[0] = ""
_DECIMAL_SUFFIXES = {
    "n": -9, "u": -6, "m": -3, "": 0, "k": 3, "M": 6, "G": 9, "T": 12, "P": 15, "E": 18,
}
_DECIMAL_BY_EXPONENT = {exp: suffix for suffix, exp in _DECIMAL_SUFFIXES.items()}

_NUMBER_RE = re.compile(r"([+-]?(?:\d+(?:\.\d*)?|\.\d+))(.*)", re.S)
_EXPONENT_RE = re.compile(r"[eE][+-]?\d+")

_NANO = 10**9
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class QuantityError(ValueError):
    """Raised for malformed or unrepresentable quantities."""


def _round_away(value: Fraction) -> int:
    if value.denominator == 1:
        return value.numerator
    floor = value.numerator // value.denominator
    return floor + 1 if value > 0 else floor


def _round_nano(amount: Fraction) -> Fraction:
    scaled = amount * _NANO
    if scaled.denominator == 1:
        return amount
    return Fraction(_round_away(scaled), _NANO)


@functools.total_ordering
class Quantity:
    """An exact amount of a resource together with its preferred notation."""

    __slots__ = ("_amount", "format")

    def __init__(self, amount: Union[int, str, Fraction, Decimal] = 0, fmt: str = DECIMAL_SI):
        if fmt not in _FORMATS:
            raise QuantityError(f"unknown quantity format {fmt!r}")
        self._amount = _round_nano(Fraction(amount))
        self.format = fmt

    @property
    def amount(self) -> Fraction:
        """The exact amount."""
        return self._amount

    def value(self) -> int:
        """Return the amount rounded up, away from zero, to an integer."""
        return _round_away(self._amount)

    def milli_value(self) -> int:
        """Return the amount in thousandths, rounded up away from zero."""
        return _round_away(self._amount * 1000)

    def as_int(self) -> int:
        """Return the amount as an integer if it is one that fits in 64 bits."""
        if self._amount.denominator != 1 or not _INT64_MIN <= self._amount <= _INT64_MAX:
            raise QuantityError(f"quantity {self} is not a 64-bit integer")
        return self._amount.numerator

    def _decimal_parts(self) -> tuple[int, int]:
        mantissa = (self._amount * _NANO).numerator
        exponent = -9
        while exponent < 18 and mantissa % 1000 == 0:
            mantissa //= 1000
            exponent += 3
        return mantissa, exponent

    def __str__(self) -> str:
        amount = self._amount
        if amount == 0:
            return "0"
        fmt = self.format
        if fmt == BINARY_SI and (-1024 < amount < 1024 or amount.denominator != 1):
            fmt = DECIMAL_SI
        if fmt == BINARY_SI:
            number = amount.numerator
            power = 0
            while power < 6 and number % 1024 == 0:
                number //= 1024
                power += 1
            return f"{number}{_BINARY_BY_POWER[power]}"
        mantissa, exponent = self._decimal_parts()
        if fmt == DECIMAL_EXPONENT:
            return f"{mantissa}e{exponent}" if exponent else str(mantissa)
        return f"{mantissa}{_DECIMAL_BY_EXPONENT[exponent]}"

    def __repr__(self) -> str:
        return f"Quantity({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self._amount == other._amount

    def __lt__(self, other: "Quantity") -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self._amount < other._amount

    def __hash__(self) -> int:
        return hash(self._amount)


def parse_quantity(text: str) -> Quantity:
    """Parse a quantity such as ``1500m``, ``2Mi`` or ``1e3``."""
    match = _NUMBER_RE.fullmatch(text)
    if match is None:
        raise QuantityError(f"quantities must match the regular expression: {text!r}")
    number, suffix = match.groups()
    try:
        amount = Fraction(Decimal(number))
    except InvalidOperation as err:
        raise QuantityError(f"invalid number in quantity {text!r}") from err

    if suffix in _BINARY_SUFFIXES:
        return Quantity(amount * 1024 ** _BINARY_SUFFIXES[suffix], BINARY_SI)
    if suffix in _DECIMAL_SUFFIXES:
        return Quantity(amount * Fraction(10) ** _DECIMAL_SUFFIXES[suffix], DECIMAL_SI)
    if _EXPONENT_RE.fullmatch(suffix):
        return Quantity(amount * Fraction(10) ** int(suffix[1:]), DECIMAL_EXPONENT)
    raise QuantityError(f"unable to parse quantity's suffix: {text!r}")


def hugepage_resource_name(quantity: Quantity) -> str:
    """Return the resource name for hugepages of the given page size."""
    return "hugepages-" + str(quantity)