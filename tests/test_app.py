from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from services.calculator import UsageCalculator
from services.power_usage import PowerUsageService
from services.prometheus import PrometheusClient
from settings import get_settings

CURRENT_EPOCH = str(int(datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc).timestamp()))
PREVIOUS_EPOCH = str(int(datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc).timestamp()))

Handler = Callable[[httpx.Request], httpx.Response]


def _vector(*entries: tuple[str, str, str]) -> Dict[str, Any]:
    return {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [
                {
                    "metric": {"__name__": "energy", "instance": instance, "address": address},
                    "value": [1704164400, value],
                }
                for instance, address, value in entries
            ],
        },
    }


def _by_instant(previous: Dict[str, Any], current: Dict[str, Any]) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        instant = request.url.params["time"]
        if instant == PREVIOUS_EPOCH:
            return httpx.Response(200, json=previous)
        if instant == CURRENT_EPOCH:
            return httpx.Response(200, json=current)
        return httpx.Response(400, json={"status": "error", "error": f"unexpected time {instant}"})

    return handler


class UpstreamStub:
    """Routes outbound Prometheus requests to a swappable handler."""

    def __init__(self) -> None:
        self.handler: Handler = _by_instant(_vector(), _vector())
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def api_client(upstream: UpstreamStub, monkeypatch) -> Iterator[TestClient]:
    monkeypatch.setenv("PROMETHEUS_HOST", "prometheus.test:9090")
    get_settings.cache_clear()

    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(upstream), base_url="http://prometheus.test:9090"
    )
    service = PowerUsageService(
        client=PrometheusClient("http://prometheus.test:9090", client=http_client),
        calculator=UsageCalculator(),
    )

    def build_test_service() -> PowerUsageService:
        return service

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_service", build_test_service)
    monkeypatch.setattr("app.api.build_default_service", build_test_service)

    app = create_app()
    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()


def _get(client: TestClient, **params: str) -> httpx.Response:
    query = {"target": "192.168.1.1", "date": "2024-01-02", "time": "10:00"}
    query.update(params)
    return client.get("/api/v1/power-usage", params={k: v for k, v in query.items() if v is not None})


def test_json_report_for_single_address(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.handler = _by_instant(
        _vector(("192.168.1.1", "1", "125.4")),
        _vector(("192.168.1.1", "1", "127.8")),
    )

    response = _get(api_client)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    payload = response.json()
    assert list(payload) == ["192.168.1.1"]
    (record,) = payload["192.168.1.1"]
    assert record["prev_kwh"] == 125.4
    assert record["curr_kwh"] == 127.8
    assert record["daily_kwh"] == pytest.approx(2.4)
    assert record["avg_power_watt"] == pytest.approx(100.0)

    queries = {request.url.params["query"] for request in upstream.requests}
    assert queries == {'last_over_time(energy{instance=~"192.168.1.1"}[10m])'}
    assert sorted(request.url.params["time"] for request in upstream.requests) == sorted(
        [PREVIOUS_EPOCH, CURRENT_EPOCH]
    )


def test_csv_report_orders_addresses(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.handler = _by_instant(
        _vector(("192.168.1.1", "2", "20.0"), ("192.168.1.1", "1", "10.0")),
        _vector(("192.168.1.1", "2", "26.0"), ("192.168.1.1", "1", "12.4")),
    )

    response = _get(api_client, csv="true")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.splitlines()
    assert lines[0] == "Target,Address,Prev_kWh,Current_KWh,Daily_KWh,Avg_Power_Watt"
    assert lines[1].startswith("192.168.1.1,1,10.0,12.4,")
    assert lines[2] == "192.168.1.1,2,20.0,26.0,6.0,250.0"


def test_csv_flag_false_returns_json(api_client: TestClient) -> None:
    response = _get(api_client, csv="false")

    assert response.status_code == 200
    assert response.json() == {}


def test_empty_current_vector_yields_no_entries(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.handler = _by_instant(_vector(("192.168.1.1", "1", "125.4")), _vector())

    response = _get(api_client)

    assert response.status_code == 200
    assert response.json() == {}


@pytest.mark.parametrize("missing", ["target", "date", "time"])
def test_missing_parameter_returns_bad_request(
    api_client: TestClient, upstream: UpstreamStub, missing: str
) -> None:
    response = _get(api_client, **{missing: None})

    assert response.status_code == 400
    assert missing in response.json()["detail"]
    assert upstream.requests == []


@pytest.mark.parametrize(
    "params",
    [
        {"date": "02-01-2024"},
        {"time": "10:00:00"},
        {"date": "2024-02-30"},
        {"date": "0001-01-01"},
        {"target": 'x"}'},
        {"target": "   "},
    ],
)
def test_invalid_parameter_returns_bad_request(
    api_client: TestClient, upstream: UpstreamStub, params: Dict[str, str]
) -> None:
    response = _get(api_client, **params)

    assert response.status_code == 400
    assert upstream.requests == []


def test_upstream_503_returns_bad_gateway(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.handler = lambda request: httpx.Response(503, text="service unavailable")

    response = _get(api_client)

    assert response.status_code == 502
    assert "503" in response.json()["detail"]


def test_upstream_error_status_returns_bad_gateway(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.handler = lambda request: httpx.Response(
        200, json={"status": "error", "errorType": "timeout", "error": "query timed out"}
    )

    response = _get(api_client)

    assert response.status_code == 502


def test_upstream_connection_failure_returns_bad_gateway(
    api_client: TestClient, upstream: UpstreamStub
) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = refuse

    response = _get(api_client)

    assert response.status_code == 502


def test_health_endpoints(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"


def test_computation_failure_returns_internal_error(
    api_client: TestClient, upstream: UpstreamStub, monkeypatch
) -> None:
    def explode(self, previous, current):
        raise ZeroDivisionError("boom")

    monkeypatch.setattr("services.calculator.UsageCalculator.compute", explode)
    upstream.handler = _by_instant(
        _vector(("192.168.1.1", "1", "125.4")),
        _vector(("192.168.1.1", "1", "127.8")),
    )

    response = _get(api_client)

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to compute power usage."}
