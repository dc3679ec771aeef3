"""
Shopify 上游相关 Schema

两种订单形态:
  GRAPHQL (Shape A): orders(first, after) { nodes { ... } pageInfo { hasNextPage endCursor } }
                     金额在 *PriceSet.presentmentMoney，行项目在 lineItems.edges[].node
  REST    (Shape B): GET orders.json -> {"orders": [...]}，字段为 snake_case，
                     下一页游标在响应头 Link 的 rel="next" URL 的 page_info 参数里
"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.orders import OrderRecord


class RawShape(str, Enum):
    """上游订单形态（在调用处确定一次）"""
    GRAPHQL = "graphql"
    REST = "rest"


class RestResponse(BaseModel):
    """REST 响应容器：响应头 + JSON body"""
    headers: dict[str, str] = {}
    body: Any = None

    model_config = ConfigDict(frozen=True)

    def header(self, name: str) -> Optional[str]:
        """大小写不敏感取响应头"""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class UpstreamBatch(BaseModel):
    """上游一页：已转换的订单 + 续页游标"""
    records: list[OrderRecord] = []
    has_next_page: bool = False
    end_cursor: Optional[str] = None

    model_config = ConfigDict(frozen=True)
