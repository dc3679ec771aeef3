"""
OrderRecord -> 订单列表行（金额格式化、日期截断、顾客名兜底）
"""
from loguru import logger

from app.core.errors import CustomerDataMissing
from app.schemas.orders import DisplayLineItem, OrderDisplayRecord, OrderRecord
from app.services.money import format_money, format_value


def require_customer_name(order: OrderRecord) -> str:
    if not order.customer_name:
        raise CustomerDataMissing(f"订单 {order.display_id} 无顾客信息")
    return order.customer_name


def customer_label(order: OrderRecord, fallback_label: str) -> str:
    """顾客名；订单未关联顾客时返回兜底文案，不返回空串"""
    try:
        return require_customer_name(order)
    except CustomerDataMissing as e:
        logger.debug(str(e))
        return fallback_label


def to_display_record(order: OrderRecord, locale: str, fallback_label: str) -> OrderDisplayRecord:
    return OrderDisplayRecord(
        id=order.display_id,
        order=order.internal_id,
        display_name=customer_label(order, fallback_label),
        total_price=format_money(order.totals.total, locale),
        subtotal_price=format_money(order.totals.subtotal, locale),
        total_tax=format_money(order.totals.tax, locale),
        display_financial_status=order.financial_status,
        display_fulfillment_status=order.fulfillment_status,
        processed_at=order.order_date,
        items=[
            DisplayLineItem(
                title=item.title,
                quantity=item.quantity,
                unit_price=format_money(item.unit_price, locale),
                amount=format_value(item.line_total, item.unit_price.currency, locale),
            )
            for item in order.line_items
        ],
    )
