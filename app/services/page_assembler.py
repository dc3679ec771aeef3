"""
分页组装：从累积的订单中切出请求页，并生成分页元数据。
"""
from math import ceil
from operator import attrgetter
from typing import Optional, Sequence

from app.schemas.orders import OrderRecord, PageInfo


def page_window(page: int, page_size: int) -> tuple[int, int]:
    """第 page 页在扁平列表中的 [start, end)"""
    return (page - 1) * page_size, page * page_size


def sort_by_display_id(records: Sequence[OrderRecord]) -> list[OrderRecord]:
    """按订单 name 字符串倒序（非数字比较），稳定排序"""
    return sorted(records, key=attrgetter("display_id"), reverse=True)


def assemble(
    flat_records: Sequence[OrderRecord],
    requested_page: int,
    page_size: int,
    upstream_has_next: bool,
    end_cursor: Optional[str] = None,
) -> tuple[list[OrderRecord], PageInfo]:
    """
    切出第 requested_page 页。
    超出范围不报错：返回空列表 + hasNextPage=False。
    上游已无后续页时附带 totalItems / totalPages。
    """
    page = max(requested_page, 1)
    size = max(page_size, 1)
    start, end = page_window(page, size)
    page_records = list(flat_records[start:end])

    has_next = upstream_has_next or len(flat_records) > end
    total_items = total_pages = None
    if not upstream_has_next:
        total_items = len(flat_records)
        total_pages = max(ceil(total_items / size), 1)

    return page_records, PageInfo(
        current_page=page,
        has_next_page=has_next,
        end_cursor=end_cursor,
        total_items=total_items,
        total_pages=total_pages,
    )
