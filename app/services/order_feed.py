"""
订单列表游标分页聚合

上游只提供「一页 + 续页游标」，没有直接跳到第 N 页的接口，所以每次请求都从
游标 None 开始顺序翻页，直到第 N 页的数据齐全或上游已无后续页。

状态:
  Fetching(cursor, pages_fetched) -> Done            第 N 页已覆盖
                                  -> Exhausted       上游在到达第 N 页前结束，退回最后一页
                                  -> Recovering      请求失败 / 响应结构错误
  Recovering -> 有 last_good 时退回已到达的最后一页，否则 Failed（抛 UpstreamFetchError）

上游单次条数 (batch_size) 与展示页大小 (page_size) 可以不同：上游各批先拼成扁平列表，
再按 page_size 切页。
"""
from dataclasses import dataclass, field
from math import ceil
from typing import Awaitable, Callable, Optional

from loguru import logger

from app.core.errors import MalformedUpstreamPayload, UpstreamFetchError
from app.schemas.orders import OrderPage, OrderRecord
from app.schemas.shopify import UpstreamBatch
from app.services.page_assembler import assemble, page_window, sort_by_display_id

OrderFetcher = Callable[[Optional[str]], Awaitable[UpstreamBatch]]


@dataclass
class CursorState:
    """单次请求内的翻页状态，请求结束即丢弃"""
    cursor: Optional[str] = None
    pages_fetched: int = 0
    last_good: Optional[UpstreamBatch] = None
    records: list[OrderRecord] = field(default_factory=list)

    def advance(self, batch: UpstreamBatch) -> None:
        self.pages_fetched += 1
        self.last_good = batch
        self.records.extend(batch.records)
        self.cursor = batch.end_cursor

    def last_reached_page(self, page_size: int) -> int:
        """已取到数据的最后一个展示页（至少为 1）"""
        return max(ceil(len(self.records) / page_size), 1)


class OrderFeedAggregator:
    """按页码取订单：顺序翻游标，失败时回退到最后一页有效数据"""

    def __init__(self, fetcher: OrderFetcher, page_size: int = 100, batch_size: Optional[int] = None):
        if page_size < 1:
            raise ValueError("page_size 必须 >= 1")
        self.fetcher = fetcher
        self.page_size = page_size
        self.batch_size = batch_size or page_size

    def _pages_needed(self, page: int) -> int:
        """覆盖第 page 页所需的上游页数"""
        return ceil(page * self.page_size / self.batch_size)

    async def load_page(self, page: int = 1) -> OrderPage:
        """
        取第 page 页订单。
        上游在第一页就失败时抛 UpstreamFetchError，不返回部分数据。
        """
        page = max(page, 1)
        state = CursorState()
        target = page * self.page_size

        while True:
            try:
                batch = await self.fetcher(state.cursor)
            except (UpstreamFetchError, MalformedUpstreamPayload) as e:
                return self._recover(state, page, e)

            state.advance(batch)
            upstream_more = batch.has_next_page and batch.end_cursor is not None
            logger.info(
                f"第 {state.pages_fetched} 页上游数据加载: 游标={state.cursor}, "
                f"订单数={len(batch.records)}, "
                f"最后订单日期={batch.records[-1].order_date if batch.records else None}"
            )

            if len(state.records) >= target:
                return self._finish(state, page, upstream_more)

            if not upstream_more:
                start, _ = page_window(page, self.page_size)
                if len(state.records) > start:
                    # 第 page 页有数据（可能不满），如实返回
                    return self._finish(state, page, False)
                if not batch.records and state.pages_fetched >= self._pages_needed(page):
                    # 覆盖第 page 页的那次请求本身为空：返回空页，不往前借页
                    return self._finish(state, page, False)
                last_page = state.last_reached_page(self.page_size)
                logger.info(f"请求第 {page} 页超出上游范围，返回最后一页: 第 {last_page} 页")
                return self._finish(state, last_page, False)

    def _recover(self, state: CursorState, page: int, error: Exception) -> OrderPage:
        if state.last_good is None:
            logger.error(f"订单第 1 页获取失败，无可回退数据: {error}")
            if isinstance(error, UpstreamFetchError):
                raise error
            raise UpstreamFetchError(str(error)) from error

        effective = min(page, state.last_reached_page(self.page_size))
        logger.warning(
            f"第 {state.pages_fetched + 1} 页上游数据获取失败，"
            f"回退到第 {effective} 页（请求第 {page} 页）: {error}"
        )
        return self._finish(state, effective, state.last_good.has_next_page)

    def _finish(self, state: CursorState, page: int, upstream_has_next: bool) -> OrderPage:
        # 当前页窗口按订单 name 倒序后再切页
        start, end = page_window(page, self.page_size)
        flat = state.records[:start] + sort_by_display_id(state.records[start:end]) + state.records[end:]
        records, page_info = assemble(
            flat,
            page,
            self.page_size,
            upstream_has_next,
            end_cursor=state.cursor,
        )
        logger.info(
            f"页面数据: 当前页={page_info.current_page}, 下一页={page_info.has_next_page}, "
            f"上一页={page_info.has_previous_page}, 当前页订单数={len(records)}"
        )
        return OrderPage(records=records, page_info=page_info)
