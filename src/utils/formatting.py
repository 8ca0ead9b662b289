from __future__ import annotations

from domain.coin import (
    SUI_COIN_TYPE,
    CoinTypeTag,
    FormatMode,
    InvalidCoinTypeFormat,
    format_for_display,
    get_coin_symbol,
    parse_coin_type,
)

SUI_COIN = parse_coin_type(SUI_COIN_TYPE)


def coin_type_or_default(coin_type_arg: str | None) -> CoinTypeTag:
    if not coin_type_arg:
        return SUI_COIN
    try:
        return parse_coin_type(coin_type_arg)
    except InvalidCoinTypeFormat:
        # Generic coins (e.g. LP<A, B>) keep their symbol and display in raw units.
        return CoinTypeTag(package="", module="", name=get_coin_symbol(coin_type_arg))


def format_amount(amount: int, coin_type: CoinTypeTag, mode: FormatMode = FormatMode.LOOSE) -> str:
    # Net gas is negative when the storage rebate exceeds the cost.
    formatted = format_for_display(abs(amount), coin_type, mode)
    sign = "-" if amount < 0 and formatted.placeholder is None else ""
    return f"{sign}{formatted.render()} {formatted.symbol}"


def middle_ellipsis(text: str, max_length: int = 10, prefix_length: int | None = None) -> str:
    if len(text) < max_length:
        return text
    beginning = prefix_length or -(-(max_length - 3) // 2)
    ending = max_length - beginning - 3
    return f"{text[:beginning]}...{text[len(text) - ending:] if ending > 0 else ''}"
