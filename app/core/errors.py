"""
订单列表 / 领收书相关异常。

可在本地恢复的异常（InvalidMoneyValue、CustomerDataMissing、MalformedUpstreamPayload）
不会传到接口层；UpstreamFetchError 在无可回退数据时向调用方抛出。
"""


class OrderFeedError(Exception):
    """订单列表相关错误基类"""


class UpstreamFetchError(OrderFeedError):
    """上游请求失败（网络 / 认证 / 限流 / GraphQL errors）"""


class MalformedUpstreamPayload(OrderFeedError):
    """上游响应缺少订单列表结构"""


class InvalidMoneyValue(OrderFeedError, ValueError):
    def __init__(self, raw):
        super().__init__(f"无法解析金额: {raw!r}")
        self.raw = raw


class CustomerDataMissing(OrderFeedError):
    pass


class OrderNotFound(OrderFeedError):
    def __init__(self, internal_id: str):
        super().__init__(f"订单不存在: {internal_id}")
        self.internal_id = internal_id
