"""
Kubernetes resource quantities ("500m", "1Gi", "1.000", "2e3").

Two quantities may be written differently and still describe the same amount,
so drift checks compare them with Quantity.cmp rather than ==.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from pydantic_core import core_schema

_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))"
    r"(?P<suffix>[eE][+-]?\d+|Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E)?$"
)

_BINARY_SUFFIXES = {
    "Ki": Decimal(1024),
    "Mi": Decimal(1024) ** 2,
    "Gi": Decimal(1024) ** 3,
    "Ti": Decimal(1024) ** 4,
    "Pi": Decimal(1024) ** 5,
    "Ei": Decimal(1024) ** 6,
}

_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}


def parse_quantity(text: str) -> Decimal:
    """Parse a quantity string into its exact decimal value."""
    match = _QUANTITY_RE.match(text.strip())
    if match is None:
        raise ValueError(f"quantities must match the regular expression {_QUANTITY_RE.pattern!r}: {text!r}")

    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as e:
        raise ValueError(f"invalid quantity number in {text!r}") from e

    suffix = match.group("suffix") or ""
    if suffix in _BINARY_SUFFIXES:
        return number * _BINARY_SUFFIXES[suffix]
    if suffix in _DECIMAL_SUFFIXES:
        return number * _DECIMAL_SUFFIXES[suffix]
    # Decimal exponent form, e.g. "1e3"
    return number.scaleb(int(suffix[1:]))


class Quantity:
    """A resource quantity that remembers how it was written."""

    __slots__ = ("text", "value")

    def __init__(self, text: Union[str, int, float, "Quantity"]):
        if isinstance(text, Quantity):
            text = text.text
        self.text = str(text).strip()
        self.value = parse_quantity(self.text)

    def cmp(self, other: "Quantity") -> int:
        """Compare magnitudes: -1, 0 or 1."""
        if self.value < other.value:
            return -1
        if self.value > other.value:
            return 1
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.text == other.text

    def __hash__(self) -> int:
        return hash(self.text)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Quantity({self.text!r})"

    @classmethod
    def _validate(cls, value: Any) -> "Quantity":
        if isinstance(value, Quantity):
            return value
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValueError(f"cannot interpret {value!r} as a quantity")
        return cls(value)

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


def quantities_equal(x: Quantity, y: Quantity) -> bool:
    """Numeric equivalence, ignoring formatting."""
    return x.cmp(y) == 0
