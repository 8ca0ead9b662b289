"""Utilities for 0x2::coin amounts.

Balances are plain ``int`` values in the coin's smallest unit. Display values are
computed with ``Decimal`` so large balances never pass through a float; the only
lossy path is :func:`parse_user_input`, which mirrors what a text field does with
user typed amounts and must not be used for accounting.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import StrEnum
from typing import Mapping

from domain.ledger import ObjectSnapshot

COIN_PACKAGE_ID = "0x2"
COIN_MODULE_NAME = "coin"
COIN_TYPE = f"{COIN_PACKAGE_ID}::{COIN_MODULE_NAME}::Coin"
SUI_COIN_TYPE = "0x2::sui::SUI"
GAS_SYMBOL = "SUI"

COIN_DENOMINATIONS: Mapping[str, int] = {
    SUI_COIN_TYPE: 10**9,
}

ACCURATE_MAX_FRACTION_DIGITS = 20
LOOSE_SUBUNIT_MAX_FRACTION_DIGITS = 8
LOOSE_MAX_FRACTION_DIGITS = 3
LOOSE_MIN_DISPLAY_VALUE = Decimal("1e-8")
PLACEHOLDER = "– –"

_COIN_TYPE_ARG_RE = re.compile(r"^0x2::coin::Coin<(.+)>$")
_COIN_TYPE_RE = re.compile(
    r"^(?P<package>(?:0x)?[0-9A-Za-z_]+)::(?P<module>[A-Za-z_][A-Za-z0-9_]*)::(?P<name>[A-Za-z_][A-Za-z0-9_]*)$"
)
_COMPACT_UNITS: tuple[tuple[Decimal, str], ...] = (
    (Decimal(1), ""),
    (Decimal(10) ** 3, "K"),
    (Decimal(10) ** 6, "M"),
    (Decimal(10) ** 9, "B"),
    (Decimal(10) ** 12, "T"),
)


class InvalidCoinTypeFormat(ValueError):
    def __init__(self, type_string: str) -> None:
        self.type_string = type_string
        super().__init__(f"Invalid coin type format: {type_string!r}")


class NotACoinObject(ValueError):
    def __init__(self, *, object_id: str, object_type: str) -> None:
        self.object_id = object_id
        self.object_type = object_type
        super().__init__(f"Object {object_id} of type {object_type!r} is not a coin")


class FormatMode(StrEnum):
    ACCURATE = "accurate"
    LOOSE = "loose"


class Notation(StrEnum):
    STANDARD = "standard"
    COMPACT = "compact"


@dataclass(frozen=True)
class CoinTypeTag:
    package: str
    module: str
    name: str

    @property
    def symbol(self) -> str:
        return self.name

    def __str__(self) -> str:
        return f"{self.package}::{self.module}::{self.name}"


@dataclass(frozen=True)
class PrecisionHint:
    max_fraction_digits: int
    notation: Notation = Notation.STANDARD


@dataclass(frozen=True)
class FormattedAmount:
    value: Decimal
    symbol: str
    precision: PrecisionHint
    placeholder: str | None = None

    def render(self) -> str:
        if self.placeholder is not None:
            return self.placeholder
        if self.precision.notation == Notation.COMPACT:
            return _format_compact(self.value, self.precision.max_fraction_digits)
        return _format_standard(self.value, self.precision.max_fraction_digits)


def parse_coin_type(type_string: str) -> CoinTypeTag:
    match = _COIN_TYPE_RE.match(type_string)
    if match is None:
        raise InvalidCoinTypeFormat(type_string)
    return CoinTypeTag(package=match["package"], module=match["module"], name=match["name"])


def get_coin_type_arg(object_type: str) -> str | None:
    match = _COIN_TYPE_ARG_RE.match(object_type)
    return match[1] if match else None


def is_coin(object_type: str) -> bool:
    return get_coin_type_arg(object_type) is not None


def get_coin_symbol(coin_type_arg: str) -> str:
    return coin_type_arg[coin_type_arg.rfind(":") + 1 :]


def extract_balance(obj: ObjectSnapshot) -> int:
    if not is_coin(obj.type):
        raise NotACoinObject(object_id=obj.object_id, object_type=obj.type)
    raw = obj.fields.get("balance")
    # Floats would already have lost precision upstream.
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise ValueError(f"Coin {obj.object_id} has unexpected balance field: {raw!r}")
    return int(raw)


def denomination_for(coin_type: CoinTypeTag, denominations: Mapping[str, int] | None = None) -> int:
    table = COIN_DENOMINATIONS if denominations is None else denominations
    return table.get(str(coin_type), 1)


def format_for_display(
    balance: int,
    coin_type: CoinTypeTag,
    mode: FormatMode,
    denominations: Mapping[str, int] | None = None,
) -> FormattedAmount:
    if balance < 0:
        raise ValueError(f"Balance must be non-negative, got {balance}")
    denomination = denomination_for(coin_type, denominations)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(abs(balance))) + ACCURATE_MAX_FRACTION_DIGITS + 2)
        value = Decimal(balance) / Decimal(denomination)

    if mode == FormatMode.ACCURATE:
        return FormattedAmount(
            value=value,
            symbol=coin_type.symbol,
            precision=PrecisionHint(max_fraction_digits=ACCURATE_MAX_FRACTION_DIGITS),
        )

    if balance < denomination:
        precision = PrecisionHint(max_fraction_digits=LOOSE_SUBUNIT_MAX_FRACTION_DIGITS)
    else:
        precision = PrecisionHint(max_fraction_digits=LOOSE_MAX_FRACTION_DIGITS, notation=Notation.COMPACT)
    return FormattedAmount(
        value=value,
        symbol=coin_type.symbol,
        precision=precision,
        placeholder=PLACEHOLDER if value < LOOSE_MIN_DISPLAY_VALUE else None,
    )


def parse_user_input(text: str, denomination: int) -> int:
    """Convert a typed decimal amount into smallest units.

    XXX: goes through a float, so amounts needing more than ~15 significant digits
    come back rounded. Halves round away from zero.
    """
    try:
        value = float(text.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid amount: {text!r}") from exc
    if not math.isfinite(value):
        raise ValueError(f"Invalid amount: {text!r}")

    scaled = value * denomination
    rounded = math.floor(abs(scaled) + 0.5)
    return -rounded if scaled < 0 else rounded


def _round(value: Decimal, max_fraction_digits: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + max_fraction_digits + 2)
        return value.quantize(Decimal(1).scaleb(-max_fraction_digits), rounding=ROUND_HALF_UP)


def _strip_zeros(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _format_standard(value: Decimal, max_fraction_digits: int) -> str:
    return _strip_zeros(f"{_round(value, max_fraction_digits):,f}")


def _format_compact(value: Decimal, max_fraction_digits: int) -> str:
    magnitude = abs(value)
    index = 0
    for position, (scale, _) in enumerate(_COMPACT_UNITS):
        if magnitude >= scale:
            index = position

    scaled = _round(value / _COMPACT_UNITS[index][0], max_fraction_digits)
    # 999.9996K rounds up to 1000K, which reads as 1M.
    if abs(scaled) >= 1000 and index + 1 < len(_COMPACT_UNITS):
        index += 1
        scaled = _round(value / _COMPACT_UNITS[index][0], max_fraction_digits)

    return f"{_strip_zeros(f'{scaled:f}')}{_COMPACT_UNITS[index][1]}"
