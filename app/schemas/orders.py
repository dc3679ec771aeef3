"""
订单统一结构（canonical record）

GraphQL / REST 两种上游订单形态都会先转换为 OrderRecord，再用于列表展示与领收书打印。
对外 JSON 一律使用 camelCase 字段名。
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """对外输出 camelCase 的只读模型"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class MoneyAmount(CamelModel):
    """金额：数值 + ISO 4217 币种；展示字符串不缓存，见 app.services.money.format_money"""
    value: Decimal = Decimal("0")
    currency: str


class LineItem(CamelModel):
    title: str = ""
    quantity: int = Field(0, ge=0)
    unit_price: MoneyAmount

    @property
    def line_total(self) -> Decimal:
        """行金额 = 数量 × 单价（只计算，不存储）"""
        return self.quantity * self.unit_price.value


class OrderTotals(CamelModel):
    total: MoneyAmount
    subtotal: MoneyAmount
    tax: MoneyAmount


class OrderRecord(CamelModel):
    """统一订单记录，创建后不可变"""
    display_id: str = ""  # 订单 name，如 #1001，可能带前缀，不能按数字排序
    internal_id: str = ""  # 平台订单 ID（数字部分）
    timestamp: str = ""  # processedAt / processed_at 原始 ISO 8601 字符串
    customer_name: Optional[str] = None
    financial_status: str = ""
    fulfillment_status: Optional[str] = None
    line_items: tuple[LineItem, ...] = ()
    totals: OrderTotals

    @property
    def order_date(self) -> str:
        """日期（精确到日），如 2024-03-01T10:00:00+09:00 -> 2024-03-01"""
        return self.timestamp.split("T")[0]


class PageInfo(CamelModel):
    """分页元数据；hasPreviousPage 由 currentPage 推导"""
    current_page: int = Field(1, ge=1)
    has_next_page: bool = False
    end_cursor: Optional[str] = Field(None, exclude=True)
    total_pages: Optional[int] = None
    total_items: Optional[int] = None

    @computed_field(alias="hasPreviousPage")
    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 1


class OrderPage(BaseModel):
    """聚合器输出：当前页订单 + 分页信息"""
    records: list[OrderRecord] = []
    page_info: PageInfo


class DisplayLineItem(CamelModel):
    title: str
    quantity: int
    unit_price: str
    amount: str


class OrderDisplayRecord(CamelModel):
    """订单列表行（金额已按 locale 格式化）"""
    id: str
    order: str
    display_name: str
    total_price: str
    subtotal_price: str
    total_tax: str
    display_financial_status: str
    display_fulfillment_status: Optional[str] = None
    processed_at: str
    items: list[DisplayLineItem] = []


class OrderListResponse(CamelModel):
    """GET /orders 响应"""
    orders: list[OrderDisplayRecord] = []
    pagination: PageInfo = PageInfo()
    error: Optional[str] = None
