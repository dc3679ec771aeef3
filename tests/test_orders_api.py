"""
订单列表 / 领收书接口测试
"""
import pytest
from fastapi.testclient import TestClient

from app.api.orders import get_aggregator_factory, get_service_factory, parse_page
from app.core.config import Settings, get_settings
from app.core.errors import OrderNotFound, UpstreamFetchError
from app.main import app
from app.services.order_feed import OrderFeedAggregator

client = TestClient(app)

FAILED_LIST = {
    "orders": [],
    "pagination": {"currentPage": 1, "hasNextPage": False, "hasPreviousPage": False},
    "error": "Failed to fetch orders.",
}


@pytest.fixture
def use_upstream():
    """用假上游替换聚合器依赖"""
    def install(upstream, page_size=2):
        app.dependency_overrides[get_aggregator_factory] = lambda: (
            lambda: OrderFeedAggregator(upstream, page_size=page_size)
        )
        return upstream
    yield install
    app.dependency_overrides.clear()


class StubService:
    def __init__(self, order=None, error=None):
        self.order = order
        self.error = error

    async def fetch_order(self, internal_id, protocol=None):
        if self.error:
            raise self.error
        return self.order


@pytest.fixture
def use_service():
    def install(service):
        app.dependency_overrides[get_service_factory] = lambda: (lambda: service)
    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def without_token():
    """未配置 SHOPIFY_ACCESS_TOKEN 的设置"""
    app.dependency_overrides[get_settings] = lambda: Settings(SHOPIFY_STORE_NAME="test-shop", SHOPIFY_ACCESS_TOKEN=None)
    yield
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self):
        data = client.get("/").json()
        assert data["status"] == "running"
        assert data["version"] == get_settings().APP_VERSION


class TestOrderList:
    def test_first_page(self, use_upstream, make_upstream):
        use_upstream(make_upstream(["#1004", "#1003"], ["#1002", "#1001"]))
        response = client.get("/orders")
        assert response.status_code == 200
        data = response.json()
        assert [o["id"] for o in data["orders"]] == ["#1004", "#1003"]
        assert data["pagination"] == {"currentPage": 1, "hasNextPage": True, "hasPreviousPage": False}
        assert "error" not in data

    def test_display_record_fields(self, use_upstream, make_upstream):
        use_upstream(make_upstream(["#1001"]))
        order = client.get("/orders?page=1").json()["orders"][0]
        assert order["order"] == "1001"
        assert order["displayName"] == "山田 太郎"
        assert order["processedAt"] == "2024-03-01"
        assert order["displayFinancialStatus"] == "PAID"
        assert "3,300" in order["totalPrice"]
        assert order["items"][0]["title"] == "Tシャツ"
        assert order["items"][0]["quantity"] == 2
        assert "3,000" in order["items"][0]["amount"]

    def test_second_page_reports_totals_when_upstream_finished(self, use_upstream, make_upstream):
        use_upstream(make_upstream(["#1004", "#1003"], ["#1002", "#1001"]))
        data = client.get("/orders", params={"page": 2}).json()
        assert [o["id"] for o in data["orders"]] == ["#1002", "#1001"]
        assert data["pagination"] == {
            "currentPage": 2,
            "hasNextPage": False,
            "hasPreviousPage": True,
            "totalPages": 2,
            "totalItems": 4,
        }

    @pytest.mark.parametrize("page", ["abc", "0", "-3", ""])
    def test_invalid_page_falls_back_to_first(self, use_upstream, make_upstream, page):
        upstream = use_upstream(make_upstream(["#1004", "#1003"], ["#1002", "#1001"]))
        data = client.get("/orders", params={"page": page}).json()
        assert data["pagination"]["currentPage"] == 1
        assert upstream.calls == [None]

    def test_missing_customer_uses_fallback_label(self, use_upstream, fake_upstream_cls, make_order):
        from app.schemas.shopify import UpstreamBatch

        use_upstream(fake_upstream_cls({None: UpstreamBatch(records=[make_order("#1", customer=None)])}))
        order = client.get("/orders").json()["orders"][0]
        assert order["displayName"] == "顧客情報無し"

    def test_upstream_failure(self, use_upstream, fake_upstream_cls):
        use_upstream(fake_upstream_cls({None: UpstreamFetchError("503")}))
        response = client.get("/orders?page=3")
        assert response.status_code == 500
        assert response.json() == FAILED_LIST

    def test_unexpected_error_keeps_failure_payload(self, use_upstream, fake_upstream_cls):
        use_upstream(fake_upstream_cls({None: AttributeError("boom")}))
        response = client.get("/orders?page=2")
        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == FAILED_LIST

    def test_missing_access_token_keeps_failure_payload(self, without_token):
        response = client.get("/orders")
        assert response.status_code == 500
        assert response.json() == FAILED_LIST


class TestReceipt:
    def test_receipt(self, use_service, make_order):
        use_service(StubService(order=make_order("#1001", items=[("Mug", 1, 500)] * 3)))
        response = client.get("/orders/1001/receipt")
        assert response.status_code == 200
        data = response.json()
        assert data["number"] == "#1001"
        assert len(data["rows"]) == 10
        assert [r["isBlank"] for r in data["rows"]].count(True) == 7
        assert data["footer"]["taxLabel"] == "税 (10%)"
        assert data["customerLabel"] == "山田 太郎 様"

    def test_receipt_not_found(self, use_service):
        use_service(StubService(error=OrderNotFound("999")))
        assert client.get("/orders/999/receipt").status_code == 404

    def test_receipt_upstream_failure(self, use_service):
        use_service(StubService(error=UpstreamFetchError("timeout")))
        response = client.get("/orders/1/receipt")
        assert response.status_code == 500
        assert "error" in response.json()

    def test_receipt_unexpected_error(self, use_service):
        use_service(StubService(error=AttributeError("boom")))
        response = client.get("/orders/1/receipt")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch order."}

    def test_receipt_missing_access_token(self, without_token):
        response = client.get("/orders/1/receipt")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch order."}


@pytest.mark.parametrize("raw, expected", [(None, 1), ("2", 2), ("x", 1), ("0", 1), ("10", 10)])
def test_parse_page(raw, expected):
    assert parse_page(raw) == expected
