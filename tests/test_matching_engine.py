import pytest

from freightshare.errors import (
    CacheUnavailable,
    InvalidShipment,
    MatchingFailed,
    PublishFailed,
    ShipmentNotFound,
    StorageUnavailable,
)
from freightshare.models.domain import (
    NEW_REQUEST_ID,
    CostSplit,
    GeoPoint,
    LoadGroup,
    ShipmentRecord,
    ShipmentRequest,
)
from freightshare.persistence.memory import InMemoryShipmentStore
from freightshare.services.cache import InMemoryCacheBackend, MatchResultCache
from freightshare.services.events import MATCH_TOPIC, InMemoryEventBus, MatchEventPublisher
from freightshare.services.matching.engine import LoadMatchingEngine

ORIGIN = GeoPoint(lat=47.6062, lng=-122.3321)
DESTINATION = GeoPoint(lat=42.3601, lng=-71.0589)


def _request(**overrides) -> ShipmentRequest:
    values = dict(
        origin=ORIGIN,
        destination=DESTINATION,
        weight=3500,
        company_id="C2",
        industry_type="electronics",
        revenue_bracket=3,
    )
    values.update(overrides)
    return ShipmentRequest(**values)


def _shipment(sid: str, industry: str = "electronics", weight: float = 5000, company_id: str = "C1", bracket: int = 3) -> ShipmentRecord:
    return ShipmentRecord(
        id=sid,
        weight=weight,
        company_id=company_id,
        industry=industry,
        revenue_bracket=bracket,
        status="pending",
        origin=GeoPoint(lat=47.61, lng=-122.33),
        destination=GeoPoint(lat=42.36, lng=-71.06),
    )


def _engine(store, cache_backend=None, bus=None):
    bus = bus or InMemoryEventBus()
    engine = LoadMatchingEngine(
        store=store,
        cache=MatchResultCache(cache_backend or InMemoryCacheBackend()),
        publisher=MatchEventPublisher(bus),
    )
    return engine, bus


class DownStore:
    def __init__(self):
        self.calls = 0

    def query_pending_within_corridor(self, *args):
        self.calls += 1
        raise StorageUnavailable("postgres timeout")


class BrokenCache:
    def get(self, key):
        raise CacheUnavailable("redis down")

    def put(self, key, value, ttl_seconds):
        raise CacheUnavailable("redis down")


class BrokenBus:
    def publish(self, topic, payload):
        raise PublishFailed("kafka down")


def test_electronics_request_groups_with_compatible_candidate():
    store = InMemoryShipmentStore([_shipment("S1")])
    engine, bus = _engine(store)

    result = engine.find_matching_loads(_request())

    assert [m.id for m in result.matches] == ["S1"]
    assert result.load_group.total_weight == 8500
    assert result.load_group.shipment_ids == ["S1"]
    assert result.load_group.companies == ["C1", "C2"]
    assert [s.shipment_id for s in result.cost_split] == ["S1", NEW_REQUEST_ID]
    base_cost = 500 * 1.5 + 8500 * 0.1
    assert sum(s.cost for s in result.cost_split) == pytest.approx(base_cost, abs=0.02)
    [event] = bus.messages_for(MATCH_TOPIC)
    assert event["companyId"] == "C2"
    assert event["matchCount"] == 1
    assert event["loadGroupId"] == result.load_group.id


def test_incompatible_industry_leaves_requester_alone():
    store = InMemoryShipmentStore([_shipment("S1", industry="food", weight=100)])
    engine, _ = _engine(store)

    result = engine.find_matching_loads(_request(industry_type="hazardous"))

    assert result.matches == []
    assert result.load_group.shipment_ids == []
    assert result.load_group.total_weight == 3500
    assert result.cost_split == [CostSplit(NEW_REQUEST_ID, "C2", 1100.0)]


def test_request_distance_is_used_for_base_cost():
    engine, _ = _engine(InMemoryShipmentStore())

    result = engine.find_matching_loads(_request(distance_meters=1609 * 100))

    assert result.cost_split[0].cost == pytest.approx(100 * 1.5 + 3500 * 0.1)


def test_identical_requests_within_ttl_are_served_from_cache():
    store = InMemoryShipmentStore([_shipment("S1")])
    engine, bus = _engine(store)

    first = engine.find_matching_loads(_request())
    store.add_shipment(_shipment("S2", weight=100))
    second = engine.find_matching_loads(_request())

    assert second == first
    assert len(bus.messages_for(MATCH_TOPIC)) == 1


def test_storage_failure_raises_matching_failed():
    engine, bus = _engine(DownStore())

    with pytest.raises(MatchingFailed) as excinfo:
        engine.find_matching_loads(_request())

    assert isinstance(excinfo.value.__cause__, StorageUnavailable)
    assert bus.messages == []


def test_invalid_request_is_rejected_before_io():
    store = DownStore()
    engine, _ = _engine(store)

    for bad in (
        _request(weight=-10),
        _request(weight=0),
        _request(origin=None),
        _request(destination=GeoPoint(lat=95.0, lng=0.0)),
        _request(revenue_bracket=9),
        _request(company_id=""),
    ):
        with pytest.raises(InvalidShipment):
            engine.find_matching_loads(bad)

    assert store.calls == 0


def test_cache_outage_still_returns_fresh_results():
    engine, bus = _engine(InMemoryShipmentStore([_shipment("S1")]), cache_backend=BrokenCache())

    result = engine.find_matching_loads(_request())

    assert result.load_group.total_weight == 8500
    assert len(bus.messages) == 1


def test_publish_failure_does_not_affect_result():
    engine, _ = _engine(InMemoryShipmentStore([_shipment("S1")]), bus=BrokenBus())

    result = engine.find_matching_loads(_request())

    assert [m.id for m in result.matches] == ["S1"]


def test_save_requires_resolving_new_request_placeholder():
    store = InMemoryShipmentStore([_shipment("S1")])
    engine, _ = _engine(store)
    result = engine.find_matching_loads(_request())

    with pytest.raises(InvalidShipment):
        engine.save_matched_load_group(result.load_group, result.cost_split)


def test_save_persists_group_and_marks_shipments_matched():
    store = InMemoryShipmentStore([_shipment("S1"), _shipment("S9", company_id="C2", weight=3500)])
    engine, _ = _engine(store)
    result = engine.find_matching_loads(_request())

    group_id = engine.save_matched_load_group(
        result.load_group, result.cost_split, new_shipment_id="S9", origin=ORIGIN, destination=DESTINATION
    )

    group = store.get_group(group_id)
    assert group.shipment_ids == ["S1", "S9"]
    assert group.total_weight == 8500
    assert group.route_geometry.startswith("LINESTRING")
    assert group.total_cost == pytest.approx(sum(s.cost for s in result.cost_split))
    assert store.get_shipment("S1").status == "matched"
    assert store.get_cost_split("S9").group_id == group_id
    assert result.load_group.shipment_ids == ["S1"]


def test_cost_breakdown_reports_savings_against_individual_cost():
    store = InMemoryShipmentStore(
        [_shipment("S1", weight=1000, company_id="C1"), _shipment("S2", weight=1000, company_id="C2")]
    )
    group = LoadGroup(
        id="group-1",
        shipment_ids=["S1", "S2"],
        companies=["C1", "C2"],
        total_weight=2000,
        distance_meters=360 * 1609,
    )
    store.persist_load_group(group, [CostSplit("S1", "C1", 500.0), CostSplit("S2", "C2", 500.0)])
    engine, _ = _engine(store)

    breakdown = engine.get_cost_breakdown("S1")

    assert breakdown.individual_cost == pytest.approx(800.0)
    assert breakdown.company_cost == 500.0
    assert breakdown.savings == pytest.approx(300.0)
    assert breakdown.savings_percentage == "37.50"
    assert breakdown.total_group_cost == 1000.0
    assert {s.shipment_id for s in breakdown.breakdown} == {"S1", "S2"}


def test_cost_breakdown_for_unknown_shipment_raises_not_found():
    engine, _ = _engine(InMemoryShipmentStore())

    with pytest.raises(ShipmentNotFound):
        engine.get_cost_breakdown("missing")
