"""
脚本：拉取 Shopify 订单列表第 N 页，或打印单个订单的领收书（JSON 输出到 stdout）。

运行：python run_fetch_orders.py [-p 页码，默认 1] [--receipt 订单ID] [--protocol rest|graphql]
依赖：.env 中配置 SHOPIFY_STORE_NAME、SHOPIFY_ACCESS_TOKEN
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

load_dotenv(Path(__file__).resolve().parent / ".env")
sys.path.insert(0, str(Path(__file__).resolve().parent))


async def run_page(page: int, protocol: str | None) -> dict:
    from app.core.config import get_settings
    from app.services.order_display import to_display_record
    from app.services.order_feed import OrderFeedAggregator
    from app.services.shopify_service import ShopifyService

    settings = get_settings()
    service = ShopifyService(settings)
    aggregator = OrderFeedAggregator(
        service.order_fetcher(protocol),
        page_size=settings.ORDERS_PAGE_SIZE,
        batch_size=settings.ORDERS_UPSTREAM_BATCH_SIZE,
    )
    result = await aggregator.load_page(page)
    logger.info(f"第 {result.page_info.current_page} 页，共 {len(result.records)} 条订单")
    return {
        "orders": [
            to_display_record(o, settings.DISPLAY_LOCALE, settings.CUSTOMER_FALLBACK_LABEL).model_dump(by_alias=True)
            for o in result.records
        ],
        "pagination": result.page_info.model_dump(by_alias=True, exclude_none=True),
    }


async def run_receipt(internal_id: str, protocol: str | None) -> dict:
    from app.services.receipt import build_receipt
    from app.services.shopify_service import ShopifyService

    service = ShopifyService()
    order = await service.fetch_order(internal_id, protocol)
    logger.info(f"订单 {order.display_id}: 商品 {len(order.line_items)} 件")
    return build_receipt(order).model_dump(by_alias=True)


def parse_args():
    p = argparse.ArgumentParser(description="拉取 Shopify 订单列表 / 领收书")
    p.add_argument("-p", "--page", type=int, default=1, metavar="PAGE", help="订单列表页码，默认 1")
    p.add_argument("--receipt", metavar="ORDER_ID", help="打印指定订单 ID 的领收书")
    p.add_argument("--protocol", choices=["rest", "graphql"], help="覆盖 ORDERS_PROTOCOL")
    return p.parse_args()


def main():
    args = parse_args()
    if args.receipt:
        result = asyncio.run(run_receipt(args.receipt, args.protocol))
    else:
        result = asyncio.run(run_page(args.page, args.protocol))
    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
