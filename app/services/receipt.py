"""
领收书生成

明细固定 10 行：不足补空白行，超过 10 件只显示前 10 件（打印版面固定，不视为错误）。
税额标签固定写「(10%)」，与实际税率无关，沿用现有打印样式。
"""
from decimal import Decimal
from typing import Optional, Sequence

from app.core.config import get_settings
from app.schemas.orders import OrderRecord
from app.schemas.receipt import ReceiptDocument, ReceiptFooter, ReceiptRow
from app.services.money import format_money, format_value
from app.services.order_display import customer_label

RECEIPT_ROW_COUNT = 10
RECEIPT_TITLE = "領収書"
TAX_LABEL = "税 (10%)"
HONORIFIC = "様"


def build_receipt(
    order: OrderRecord,
    locale: Optional[str] = None,
    issuer_lines: Optional[Sequence[str]] = None,
    fallback_label: Optional[str] = None,
) -> ReceiptDocument:
    settings = get_settings()
    locale = locale or settings.DISPLAY_LOCALE
    if issuer_lines is None:
        issuer_lines = settings.RECEIPT_ISSUER_LINES
    fallback_label = fallback_label or settings.CUSTOMER_FALLBACK_LABEL

    rows = [
        ReceiptRow(
            title=item.title,
            unit_price=format_money(item.unit_price, locale),
            quantity=item.quantity,
            amount=format_value(item.line_total, item.unit_price.currency, locale),
            is_blank=False,
        )
        for item in order.line_items[:RECEIPT_ROW_COUNT]
    ]
    rows.extend(ReceiptRow() for _ in range(RECEIPT_ROW_COUNT - len(rows)))

    totals = order.totals
    return ReceiptDocument(
        title=RECEIPT_TITLE,
        number=order.display_id,
        order_date=order.order_date,
        customer_label=f"{customer_label(order, fallback_label)} {HONORIFIC}",
        issuer_lines=list(issuer_lines),
        total_price=format_money(totals.total, locale),
        rows=rows,
        footer=ReceiptFooter(
            subtotal=format_money(totals.subtotal, locale),
            shipping=format_value(Decimal("0"), totals.total.currency, locale),
            tax_label=TAX_LABEL,
            tax=f"({format_money(totals.tax, locale)})",
            total=format_money(totals.total, locale),
        ),
    )
