import os

# Settings 要求 SHOPIFY_STORE_NAME，测试环境用假店铺
os.environ.setdefault("SHOPIFY_STORE_NAME", "test-shop")
os.environ.setdefault("SHOPIFY_ACCESS_TOKEN", "shpat_test")

from decimal import Decimal
from typing import Optional, Union

import pytest

from app.schemas.orders import LineItem, MoneyAmount, OrderRecord, OrderTotals
from app.schemas.shopify import UpstreamBatch


def _money(value, currency="JPY") -> MoneyAmount:
    return MoneyAmount(value=Decimal(str(value)), currency=currency)


def _order(display_id: str, internal_id: Optional[str] = None, customer: Optional[str] = "山田 太郎",
           items: Optional[list[tuple[str, int, int]]] = None) -> OrderRecord:
    items = items if items is not None else [("Tシャツ", 2, 1500)]
    line_items = tuple(
        LineItem(title=title, quantity=qty, unit_price=_money(price)) for title, qty, price in items
    )
    subtotal = sum((li.line_total for li in line_items), Decimal("0"))
    tax = subtotal / 10
    return OrderRecord(
        display_id=display_id,
        internal_id=internal_id or display_id.lstrip("#"),
        timestamp="2024-03-01T10:15:00+09:00",
        customer_name=customer,
        financial_status="PAID",
        fulfillment_status="FULFILLED",
        line_items=line_items,
        totals=OrderTotals(total=_money(subtotal + tax), subtotal=_money(subtotal), tax=_money(tax)),
    )


class FakeUpstream:
    """按游标返回预设页；值为异常时抛出"""

    def __init__(self, pages: dict[Optional[str], Union[UpstreamBatch, Exception]]):
        self.pages = pages
        self.calls: list[Optional[str]] = []

    async def __call__(self, cursor: Optional[str]) -> UpstreamBatch:
        self.calls.append(cursor)
        page = self.pages[cursor]
        if isinstance(page, Exception):
            raise page
        return page


def _chain(*page_ids: list[str]) -> dict[Optional[str], UpstreamBatch]:
    """[["#1010", ...], [...]] -> {None: 第1页(c1), "c1": 第2页(c2), ...}，最后一页无后续"""
    pages: dict[Optional[str], UpstreamBatch] = {}
    cursor: Optional[str] = None
    for index, ids in enumerate(page_ids, 1):
        is_last = index == len(page_ids)
        next_cursor = None if is_last else f"c{index}"
        pages[cursor] = UpstreamBatch(
            records=[_order(i) for i in ids],
            has_next_page=not is_last,
            end_cursor=next_cursor,
        )
        cursor = next_cursor
    return pages


@pytest.fixture
def make_order():
    return _order


@pytest.fixture
def money():
    return _money


@pytest.fixture
def make_upstream():
    def factory(*page_ids: list[str]) -> FakeUpstream:
        return FakeUpstream(_chain(*page_ids))
    return factory


@pytest.fixture
def fake_upstream_cls():
    return FakeUpstream
