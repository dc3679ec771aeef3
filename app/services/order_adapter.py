"""
上游订单 -> OrderRecord 转换

GraphQL (Shape A) 与 REST (Shape B) 两种形态由调用方通过 RawShape 指定，
任一字段缺失或格式错误都只回退默认值，不抛异常；只有整页缺少订单列表时才抛
MalformedUpstreamPayload。
"""
import re
from typing import Any, Callable, Optional

import httpx
from loguru import logger

from app.core.config import get_settings
from app.core.errors import MalformedUpstreamPayload
from app.schemas.orders import LineItem, MoneyAmount, OrderRecord, OrderTotals
from app.schemas.shopify import RawShape, RestResponse, UpstreamBatch
from app.services.money import normalize


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value).strip()
    return text or None


def _quantity(value: Any) -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(qty, 0)


def _parse_order_id(raw_id: Any) -> str:
    """GID 取数字部分，如 gid://shopify/Order/126216516 -> 126216516；REST 数字 ID 直接转字符串"""
    text = _text(raw_id)
    match = re.search(r"/(\d+)$", text)
    return match.group(1) if match else text


def _money_set(node: dict, key: str) -> dict:
    """*PriceSet 优先 presentmentMoney，其次 shopMoney"""
    price_set = _dict(node.get(key))
    return _dict(price_set.get("presentmentMoney")) or _dict(price_set.get("shopMoney"))


def _adapt_graphql(node: dict, default_currency: str) -> OrderRecord:
    """GraphQL orders.nodes[] -> OrderRecord"""
    total_money = _money_set(node, "totalPriceSet")
    subtotal_money = _money_set(node, "subtotalPriceSet")
    tax_money = _money_set(node, "totalTaxSet")
    currency = _text(total_money.get("currencyCode")) or default_currency

    line_items = []
    for edge in _list(_dict(node.get("lineItems")).get("edges")):
        li = _dict(_dict(edge).get("node"))
        unit_money = _money_set(li, "originalUnitPriceSet")
        line_items.append(LineItem(
            title=_text(li.get("title")),
            quantity=_quantity(li.get("quantity")),
            unit_price=normalize(
                unit_money.get("amount"),
                _text(unit_money.get("currencyCode")) or currency,
            ),
        ))

    return OrderRecord(
        display_id=_text(node.get("name")),
        internal_id=_parse_order_id(node.get("id")),
        timestamp=_text(node.get("processedAt") or node.get("createdAt")),
        customer_name=_optional_text(_dict(node.get("customer")).get("displayName")),
        financial_status=_text(node.get("displayFinancialStatus")),
        fulfillment_status=_optional_text(node.get("displayFulfillmentStatus")),
        line_items=tuple(line_items),
        totals=OrderTotals(
            total=normalize(total_money.get("amount"), currency),
            subtotal=normalize(subtotal_money.get("amount"), _text(subtotal_money.get("currencyCode")) or currency),
            tax=normalize(tax_money.get("amount"), _text(tax_money.get("currencyCode")) or currency),
        ),
    )


def _adapt_rest(order: dict, default_currency: str) -> OrderRecord:
    """REST orders[] -> OrderRecord（customer 需拼接 first_name + last_name）"""
    currency = _text(order.get("currency") or order.get("presentment_currency")) or default_currency

    customer = _dict(order.get("customer"))
    full_name = f"{_text(customer.get('first_name'))} {_text(customer.get('last_name'))}".strip()

    line_items = [
        LineItem(
            title=_text(li.get("title")),
            quantity=_quantity(li.get("quantity")),
            unit_price=normalize(li.get("price"), currency),
        )
        for li in map(_dict, _list(order.get("line_items")))
    ]

    return OrderRecord(
        display_id=_text(order.get("name")),
        internal_id=_parse_order_id(order.get("id")),
        timestamp=_text(order.get("processed_at") or order.get("created_at")),
        customer_name=full_name or None,
        financial_status=_text(order.get("financial_status")),
        fulfillment_status=_optional_text(order.get("fulfillment_status")),
        line_items=tuple(line_items),
        totals=OrderTotals(
            total=normalize(order.get("total_price"), currency),
            subtotal=normalize(order.get("subtotal_price"), currency),
            tax=normalize(order.get("total_tax"), currency),
        ),
    )


_ADAPTERS: dict[RawShape, Callable[[dict, str], OrderRecord]] = {
    RawShape.GRAPHQL: _adapt_graphql,
    RawShape.REST: _adapt_rest,
}


def adapt(raw: Any, shape: RawShape, default_currency: Optional[str] = None) -> OrderRecord:
    """单条上游订单 -> OrderRecord，永不抛异常"""
    if default_currency is None:
        default_currency = get_settings().DEFAULT_CURRENCY
    return _ADAPTERS[RawShape(shape)](_dict(raw), default_currency)


def parse_next_cursor(link_header: Optional[str]) -> Optional[str]:
    """从 Link 头取 rel="next" 链接的 page_info 参数；没有则返回 None"""
    if not link_header:
        return None
    next_link = httpx.Response(200, headers={"Link": link_header}).links.get("next")
    if not next_link or not next_link.get("url"):
        return None
    try:
        cursor = httpx.URL(next_link["url"]).params.get("page_info")
    except httpx.InvalidURL:
        logger.warning(f"Link 头中的 next URL 无法解析: {next_link['url']}")
        return None
    return cursor or None


def adapt_graphql_payload(connection: Any, default_currency: Optional[str] = None) -> UpstreamBatch:
    """GraphQL orders 连接 {nodes, pageInfo} -> UpstreamBatch"""
    nodes = _dict(connection).get("nodes")
    if not isinstance(nodes, list):
        raise MalformedUpstreamPayload(f"GraphQL 响应缺少 orders.nodes: {connection!r}"[:500])
    page_info = _dict(connection.get("pageInfo"))
    end_cursor = _optional_text(page_info.get("endCursor"))
    return UpstreamBatch(
        records=[adapt(n, RawShape.GRAPHQL, default_currency) for n in nodes],
        has_next_page=bool(page_info.get("hasNextPage")) and end_cursor is not None,
        end_cursor=end_cursor,
    )


def adapt_rest_response(response: RestResponse, default_currency: Optional[str] = None) -> UpstreamBatch:
    """REST 响应 (headers + {orders}) -> UpstreamBatch，游标取自 Link 头"""
    orders = _dict(response.body).get("orders")
    if not isinstance(orders, list):
        raise MalformedUpstreamPayload(f"REST 响应缺少 orders: {response.body!r}"[:500])
    next_cursor = parse_next_cursor(response.header("Link"))
    return UpstreamBatch(
        records=[adapt(o, RawShape.REST, default_currency) for o in orders],
        has_next_page=next_cursor is not None,
        end_cursor=next_cursor,
    )
