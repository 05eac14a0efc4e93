import pytest
from fastapi.testclient import TestClient

from freightshare.api.routes import matching
from freightshare.api.routes.matching import get_engine
from freightshare.errors import StorageUnavailable
from freightshare.main import create_app
from freightshare.models.domain import CostSplit, GeoPoint, LoadGroup, ShipmentRecord
from freightshare.persistence.memory import InMemoryShipmentStore
from freightshare.services.cache import MatchResultCache, NullCacheBackend
from freightshare.services.events import InMemoryEventBus, MatchEventPublisher
from freightshare.services.matching.engine import LoadMatchingEngine

REQUEST = {
    "origin": {"lat": 37.7749, "lng": -122.4194},
    "destination": {"lat": 40.7128, "lng": -74.0060},
    "weight": 3500,
    "companyId": "2",
    "industryType": "electronics",
    "revenueBracket": 3,
}


def _shipment(sid: str, company_id: str = "1", weight: float = 5000) -> ShipmentRecord:
    return ShipmentRecord(
        id=sid,
        weight=weight,
        company_id=company_id,
        industry="electronics",
        revenue_bracket=3,
        status="pending",
        origin=GeoPoint(lat=37.78, lng=-122.42),
        destination=GeoPoint(lat=40.71, lng=-74.01),
    )


def _engine(store) -> LoadMatchingEngine:
    return LoadMatchingEngine(
        store=store,
        cache=MatchResultCache(NullCacheBackend()),
        publisher=MatchEventPublisher(InMemoryEventBus()),
    )


@pytest.fixture
def store() -> InMemoryShipmentStore:
    return InMemoryShipmentStore([_shipment("1"), _shipment("new-1", company_id="2", weight=3500)])


@pytest.fixture
def api_client(store) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_engine] = lambda: _engine(store)
    return TestClient(app)


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_find_matches_endpoint(api_client: TestClient):
    response = api_client.post("/api/matches", json=REQUEST)

    assert response.status_code == 200
    payload = response.json()
    assert [match["id"] for match in payload["matches"]] == ["1"]
    assert payload["matches"][0]["companyId"] == "1"
    assert payload["loadGroup"]["totalWeight"] == 8500
    assert payload["loadGroup"]["shipmentIds"] == ["1"]
    assert sum(split["cost"] for split in payload["costSplit"]) == pytest.approx(1600.0, abs=0.02)


def test_find_matches_rejects_malformed_payload(api_client: TestClient):
    response = api_client.post("/api/matches", json={**REQUEST, "weight": -5})

    assert response.status_code == 422


def test_find_matches_maps_storage_outage_to_503():
    class DownStore:
        def query_pending_within_corridor(self, *args):
            raise StorageUnavailable("timeout")

    app = create_app()
    app.dependency_overrides[get_engine] = lambda: _engine(DownStore())
    client = TestClient(app)

    response = client.post("/api/matches", json=REQUEST)

    assert response.status_code == 503


def test_save_load_group_and_read_cost_breakdown(api_client: TestClient):
    matched = api_client.post("/api/matches", json=REQUEST).json()

    saved = api_client.post(
        "/api/load-groups",
        json={
            "loadGroup": matched["loadGroup"],
            "costSplit": matched["costSplit"],
            "newShipmentId": "new-1",
            "origin": REQUEST["origin"],
            "destination": REQUEST["destination"],
        },
    )
    assert saved.status_code == 201
    assert saved.json()["groupId"]

    response = api_client.get("/api/shipments/new-1/cost-breakdown")

    assert response.status_code == 200
    breakdown = response.json()
    assert breakdown["shipmentId"] == "new-1"
    assert breakdown["individualCost"] == pytest.approx((750 + 350) * 1.25)
    assert breakdown["savings"] == pytest.approx(breakdown["individualCost"] - breakdown["companyCost"])
    assert len(breakdown["breakdown"]) == 2


def test_save_without_resolving_placeholder_is_bad_request(api_client: TestClient):
    matched = api_client.post("/api/matches", json=REQUEST).json()

    response = api_client.post(
        "/api/load-groups",
        json={"loadGroup": matched["loadGroup"], "costSplit": matched["costSplit"]},
    )

    assert response.status_code == 400


def test_cost_breakdown_unknown_shipment_is_404(api_client: TestClient):
    assert api_client.get("/api/shipments/unknown/cost-breakdown").status_code == 404


def test_cost_breakdown_for_persisted_group(store):
    store.persist_load_group(
        LoadGroup(id="g", shipment_ids=["1"], companies=["1"], total_weight=1000, distance_meters=360 * 1609),
        [CostSplit("1", "1", 500.0), CostSplit("x", "9", 500.0)],
    )
    store.add_shipment(_shipment("1", weight=1000))
    app = create_app()
    app.dependency_overrides[get_engine] = lambda: _engine(store)

    response = TestClient(app).get("/api/shipments/1/cost-breakdown")

    assert response.status_code == 200
    assert response.json()["savingsPercentage"] == "37.50"


class ClosingBus(InMemoryEventBus):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    def close(self) -> None:
        self.closed = True


def test_app_shutdown_closes_the_event_bus(monkeypatch, store):
    bus = ClosingBus()
    engine = LoadMatchingEngine(
        store=store,
        cache=MatchResultCache(NullCacheBackend()),
        publisher=MatchEventPublisher(bus),
    )
    monkeypatch.setattr(matching, "build_engine", lambda: engine)
    get_engine.cache_clear()

    with TestClient(create_app()) as client:
        assert client.post("/api/matches", json=REQUEST).status_code == 200
        assert not bus.closed

    assert bus.closed
    assert get_engine.cache_info().currsize == 0
