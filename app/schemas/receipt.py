"""
领收书（receipt）文档结构，固定 10 行明细以保持打印版面。
"""
from typing import Optional

from app.schemas.orders import CamelModel


class ReceiptRow(CamelModel):
    """明细行；空白占位行各字段为空串"""
    title: str = ""
    unit_price: str = ""
    quantity: Optional[int] = None
    amount: str = ""
    is_blank: bool = True


class ReceiptFooter(CamelModel):
    subtotal: str
    shipping: str
    tax_label: str
    tax: str
    total: str


class ReceiptDocument(CamelModel):
    title: str
    number: str
    order_date: str
    customer_label: str
    issuer_lines: list[str] = []
    total_price: str
    rows: list[ReceiptRow]
    footer: ReceiptFooter
