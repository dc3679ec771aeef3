"""
订单列表 / 领收书接口
"""
from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.config import Settings, get_settings
from app.core.errors import OrderNotFound
from app.schemas.orders import OrderListResponse, PageInfo
from app.services.order_display import to_display_record
from app.services.order_feed import OrderFeedAggregator
from app.services.receipt import build_receipt
from app.services.shopify_service import ShopifyService

router = APIRouter(tags=["orders"])

FETCH_ERROR_MESSAGE = "Failed to fetch orders."
ORDER_FETCH_ERROR_MESSAGE = "Failed to fetch order."


def get_service_factory(settings: Settings = Depends(get_settings)) -> Callable[[], ShopifyService]:
    """服务在处理函数内创建，缺少 token 等配置错误也走统一的错误响应"""
    return lambda: ShopifyService(settings)


def get_aggregator_factory(
    make_service: Callable[[], ShopifyService] = Depends(get_service_factory),
    settings: Settings = Depends(get_settings),
) -> Callable[[], OrderFeedAggregator]:
    """每个请求新建聚合器，翻页状态不跨请求共享"""
    def build() -> OrderFeedAggregator:
        return OrderFeedAggregator(
            make_service().order_fetcher(),
            page_size=settings.ORDERS_PAGE_SIZE,
            batch_size=settings.ORDERS_UPSTREAM_BATCH_SIZE,
        )
    return build


def parse_page(raw) -> int:
    """?page= 取正整数，非法值按 1 处理"""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.get("/orders")
async def list_orders(
    request: Request,
    build_aggregator: Callable[[], OrderFeedAggregator] = Depends(get_aggregator_factory),
    settings: Settings = Depends(get_settings),
):
    """订单列表：?page=N"""
    page = parse_page(request.query_params.get("page"))
    try:
        result = await build_aggregator().load_page(page)
        orders = [
            to_display_record(order, settings.DISPLAY_LOCALE, settings.CUSTOMER_FALLBACK_LABEL)
            for order in result.records
        ]
    except Exception:
        # 任何未能回退的错误都返回同一结构的失败响应
        logger.exception(f"订单列表加载失败: 第 {page} 页")
        failed = OrderListResponse(pagination=PageInfo(current_page=1), error=FETCH_ERROR_MESSAGE)
        return JSONResponse(_dump(failed), status_code=500)

    return _dump(OrderListResponse(orders=orders, pagination=result.page_info))


@router.get("/orders/{internal_id}/receipt")
async def order_receipt(
    internal_id: str,
    make_service: Callable[[], ShopifyService] = Depends(get_service_factory),
    settings: Settings = Depends(get_settings),
):
    """单个订单的领收书"""
    try:
        order = await make_service().fetch_order(internal_id)
        receipt = build_receipt(
            order,
            locale=settings.DISPLAY_LOCALE,
            issuer_lines=settings.RECEIPT_ISSUER_LINES,
            fallback_label=settings.CUSTOMER_FALLBACK_LABEL,
        )
    except OrderNotFound as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    except Exception:
        logger.exception(f"订单 {internal_id} 加载失败")
        return JSONResponse({"error": ORDER_FETCH_ERROR_MESSAGE}, status_code=500)

    return _dump(receipt)
