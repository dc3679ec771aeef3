"""
配置管理模块
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# 获取项目根目录
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """应用配置"""

    # 环境
    ENV: str = "dev"

    # 应用配置
    APP_NAME: str = "Order Receipts"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Shopify 配置
    SHOPIFY_STORE_NAME: str
    SHOPIFY_API_VERSION: str = "2024-01"
    SHOPIFY_ACCESS_TOKEN: Optional[str] = None
    SHOPIFY_HTTP_TIMEOUT: float = 30.0

    # 订单列表：rest 走 Link 头分页，graphql 走 pageInfo 分页
    ORDERS_PROTOCOL: Literal["rest", "graphql"] = "rest"
    ORDERS_PAGE_SIZE: int = Field(100, ge=1)
    # 上游单次拉取条数（Shopify 上限 250），可与展示页大小不同
    ORDERS_UPSTREAM_BATCH_SIZE: int = Field(100, ge=1, le=250)

    # 展示配置
    DISPLAY_LOCALE: str = "ja_JP"
    DEFAULT_CURRENCY: str = "JPY"
    CUSTOMER_FALLBACK_LABEL: str = "顧客情報無し"
    RECEIPT_ISSUER_LINES: list[str] = [
        "1acspaces",
        "107-0062",
        "東京都港区南青山3丁目1番36号",
        "青山丸竹ビル6F",
        "TEL: 050-1809-4046",
    ]

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def shopify_api_url(self) -> str:
        """Shopify REST API 基础 URL"""
        return f"https://{self.SHOPIFY_STORE_NAME}.myshopify.com/admin/api/{self.SHOPIFY_API_VERSION}"

    @property
    def shopify_graphql_url(self) -> str:
        """Shopify Admin GraphQL API URL"""
        return f"{self.shopify_api_url}/graphql.json"


@lru_cache
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
