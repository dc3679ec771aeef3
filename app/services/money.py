"""
金额规范化与本地化格式

上游金额可能是数字、数字字符串、None 或缺失；无法解析时一律视为 0，不中断整页。
"""
from decimal import Decimal, InvalidOperation
from typing import Any

from babel.numbers import format_currency, format_decimal
from loguru import logger

from app.core.errors import InvalidMoneyValue
from app.schemas.orders import MoneyAmount

ZERO = Decimal("0")


def parse_amount(raw: Any) -> Decimal:
    """严格解析金额，失败抛 InvalidMoneyValue"""
    # bool 是 int 子类，不当作金额
    if raw is None or isinstance(raw, bool):
        raise InvalidMoneyValue(raw)
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        try:
            value = Decimal(raw.strip())
        except InvalidOperation:
            raise InvalidMoneyValue(raw) from None
    else:
        raise InvalidMoneyValue(raw)
    if not value.is_finite():
        raise InvalidMoneyValue(raw)
    return value


def normalize(raw: Any, currency: str) -> MoneyAmount:
    """金额规范化：任何无法解析的输入都返回 0，不抛异常"""
    try:
        value = parse_amount(raw)
    except InvalidMoneyValue as e:
        if raw is not None:
            logger.debug(f"{e}，按 0 处理")
        value = ZERO
    return MoneyAmount(value=value, currency=currency or "")


def format_value(value: Decimal, currency: str, locale: str) -> str:
    """按 locale 货币规则格式化（JPY 等无辅币的币种不带小数）"""
    if not currency:
        return format_decimal(value, locale=locale)
    return format_currency(value, currency, locale=locale)


def format_money(amount: MoneyAmount, locale: str) -> str:
    return format_value(amount.value, amount.currency, locale)
