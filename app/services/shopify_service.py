"""
Shopify 服务层 - 订单列表 / 单个订单拉取
GraphQL: https://shopify.dev/docs/api/admin-graphql/latest/queries/orders
REST:    https://shopify.dev/docs/api/admin-rest/latest/resources/order
REST 分页: https://shopify.dev/docs/api/usage/pagination-rest
"""
from typing import Any, Optional

import httpx
from loguru import logger

from app.core.config import Settings, get_settings
from app.core.errors import MalformedUpstreamPayload, OrderNotFound, UpstreamFetchError
from app.schemas.orders import OrderRecord
from app.schemas.shopify import RawShape, RestResponse, UpstreamBatch
from app.services.order_adapter import adapt, adapt_graphql_payload, adapt_rest_response
from app.services.order_feed import OrderFetcher

# 订单字段（列表与单个订单共用）
ORDER_FIELDS = """
    id
    name
    processedAt
    createdAt
    customer {
      displayName
    }
    displayFinancialStatus
    displayFulfillmentStatus
    lineItems(first: 100) {
      edges {
        node {
          title
          quantity
          originalUnitPriceSet {
            presentmentMoney {
              amount
              currencyCode
            }
          }
        }
      }
    }
    totalPriceSet {
      presentmentMoney {
        amount
        currencyCode
      }
    }
    subtotalPriceSet {
      presentmentMoney {
        amount
        currencyCode
      }
    }
    totalTaxSet {
      presentmentMoney {
        amount
        currencyCode
      }
    }
"""

# GraphQL 查询：按处理时间倒序分页获取订单
ORDERS_QUERY = """
query GetOrders($first: Int!, $cursor: String) {
  orders(first: $first, after: $cursor, sortKey: PROCESSED_AT, reverse: true) {
    nodes {%s}
    pageInfo {
      hasNextPage
      endCursor
      hasPreviousPage
      startCursor
    }
  }
}
""" % ORDER_FIELDS

ORDER_QUERY = """
query GetOrder($id: ID!) {
  order(id: $id) {%s}
}
""" % ORDER_FIELDS

MAX_BATCH_SIZE = 250


class ShopifyService:
    """Shopify 订单服务（GraphQL / REST）"""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self.graphql_url = self.settings.shopify_graphql_url
        self.api_url = self.settings.shopify_api_url
        self._transport = transport
        if not self.settings.SHOPIFY_ACCESS_TOKEN:
            raise ValueError("请在 .env 中配置 SHOPIFY_ACCESS_TOKEN")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.SHOPIFY_HTTP_TIMEOUT,
            transport=self._transport,
            headers={"X-Shopify-Access-Token": self.settings.SHOPIFY_ACCESS_TOKEN},
        )

    async def _graphql_request(self, query: str, variables: Optional[dict] = None) -> dict:
        """
        发起 Shopify GraphQL 请求
        POST https://{store}.myshopify.com/admin/api/{version}/graphql.json
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        logger.info(f"请求 Shopify GraphQL: POST {self.graphql_url}")
        logger.debug(f"variables: {variables}")

        async with self._client() as client:
            try:
                response = await client.post(self.graphql_url, json=payload)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"Shopify GraphQL 请求失败: {e.response.status_code} - {e.response.text}"
                )
                raise UpstreamFetchError(f"Shopify GraphQL HTTP {e.response.status_code}") from e
            except (httpx.HTTPError, ValueError) as e:
                logger.exception(f"Shopify GraphQL 请求异常: {str(e)}")
                raise UpstreamFetchError(f"Shopify GraphQL 请求异常: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamFetchError(f"Shopify GraphQL 响应不是 JSON 对象: {data!r}"[:500])
        if data.get("errors"):
            logger.error(f"GraphQL 错误: {data['errors']}")
            raise UpstreamFetchError(f"GraphQL errors: {data['errors']}")

        result = data.get("data")
        if result is None:
            result = {}
        if not isinstance(result, dict):
            raise MalformedUpstreamPayload(f"Shopify GraphQL data 不是 JSON 对象: {result!r}"[:500])

        logger.info("Shopify GraphQL 请求成功")
        return result

    async def _rest_get(self, path: str, params: dict[str, Any]) -> RestResponse:
        """GET {api_url}/{path}，返回响应头 + JSON body"""
        url = f"{self.api_url}/{path}"
        logger.info(f"请求 Shopify REST: GET {url}")
        logger.debug(f"params: {params}")

        async with self._client() as client:
            try:
                response = await client.get(url, params=params)
                response.raise_for_status()
                body = response.json()
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    return RestResponse(headers=dict(e.response.headers), body=None)
                logger.error(
                    f"Shopify REST 请求失败: {e.response.status_code} - {e.response.text}"
                )
                raise UpstreamFetchError(f"Shopify REST HTTP {e.response.status_code}") from e
            except (httpx.HTTPError, ValueError) as e:
                logger.exception(f"Shopify REST 请求异常: {str(e)}")
                raise UpstreamFetchError(f"Shopify REST 请求异常: {e}") from e

        return RestResponse(headers=dict(response.headers), body=body)

    async def fetch_orders_graphql(self, cursor: Optional[str] = None, first: int = 100) -> Any:
        """GraphQL 取一页订单，返回 orders 连接 {nodes, pageInfo}"""
        variables: dict[str, Any] = {"first": min(first, MAX_BATCH_SIZE)}
        if cursor:
            variables["cursor"] = cursor
        data = await self._graphql_request(ORDERS_QUERY, variables)
        return data.get("orders")

    async def fetch_orders_rest(self, cursor: Optional[str] = None, limit: int = 100) -> RestResponse:
        """
        REST 取一页订单。
        带 page_info 时 Shopify 只接受 limit / fields，所以 status 只在首页传。
        """
        params: dict[str, Any] = {"limit": min(limit, MAX_BATCH_SIZE)}
        if cursor:
            params["page_info"] = cursor
        else:
            params["status"] = "any"
        return await self._rest_get("orders.json", params)

    def order_fetcher(self, protocol: Optional[str] = None, batch_size: Optional[int] = None) -> OrderFetcher:
        """生成聚合器使用的取页函数：cursor -> UpstreamBatch"""
        shape = RawShape(protocol or self.settings.ORDERS_PROTOCOL)
        size = batch_size or self.settings.ORDERS_UPSTREAM_BATCH_SIZE
        currency = self.settings.DEFAULT_CURRENCY

        async def fetch(cursor: Optional[str]) -> UpstreamBatch:
            if shape is RawShape.GRAPHQL:
                connection = await self.fetch_orders_graphql(cursor, first=size)
                return adapt_graphql_payload(connection, currency)
            response = await self.fetch_orders_rest(cursor, limit=size)
            return adapt_rest_response(response, currency)

        return fetch

    async def fetch_order(self, internal_id: str, protocol: Optional[str] = None) -> OrderRecord:
        """按平台订单 ID 取单个订单（打印领收书用）"""
        shape = RawShape(protocol or self.settings.ORDERS_PROTOCOL)
        currency = self.settings.DEFAULT_CURRENCY
        if shape is RawShape.GRAPHQL:
            data = await self._graphql_request(
                ORDER_QUERY, {"id": f"gid://shopify/Order/{internal_id}"}
            )
            node = data.get("order")
        else:
            response = await self._rest_get(f"orders/{internal_id}.json", {})
            node = (response.body or {}).get("order") if isinstance(response.body, dict) else None
        if not node:
            raise OrderNotFound(internal_id)
        return adapt(node, shape, currency)
