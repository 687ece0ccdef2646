"""
Tests for the visualization compute engine.
"""

import pytest

from meetglobe.models import Arc, Point
from meetglobe.visualization import build_arcs, compute_visualization


def _point(i: int) -> Point:
    return Point(member_id=str(i), member_name=f"P{i}", city_name="X", lat=float(i), lng=float(-i))


class TestArcs:
    """Test complete-graph arc construction."""

    @pytest.mark.parametrize("n", [0, 1, 2, 3, 5, 12])
    def test_arc_count(self, n):
        arcs = build_arcs([_point(i) for i in range(n)])
        assert len(arcs) == n * (n - 1) // 2

    def test_arc_order_and_endpoints(self):
        arcs = build_arcs([_point(0), _point(1), _point(2)])
        assert arcs == [
            Arc(start_lat=0.0, start_lng=0.0, end_lat=1.0, end_lng=-1.0),
            Arc(start_lat=0.0, start_lng=0.0, end_lat=2.0, end_lng=-2.0),
            Arc(start_lat=1.0, start_lng=-1.0, end_lat=2.0, end_lng=-2.0),
        ]


class TestComputeVisualization:
    """Test joining meetings, members and cities."""

    def test_two_participants_one_arc(self, members, meetings, cities):
        alice = members.find_or_create("Alice", "Paris")
        bob = members.find_or_create("Bob", "London")
        meeting = meetings.create("Standup", [alice.id, bob.id])

        viz = compute_visualization(meeting, members, cities)

        assert [p.member_name for p in viz.points] == ["Alice", "Bob"]
        assert len(viz.arcs) == 1
        arc = viz.arcs[0]
        assert (arc.start_lat, arc.start_lng) == (48.8566, 2.3522)
        assert (arc.end_lat, arc.end_lng) == (51.5072, -0.1276)
        assert viz.warnings == []

    def test_all_resolved_complete_graph(self, members, meetings, cities):
        ids = [
            members.find_or_create(name, city).id
            for name, city in [("A", "Paris"), ("B", "London"), ("C", "Tokyo"), ("D", "New York"), ("E", "Nairobi")]
        ]
        viz = compute_visualization(meetings.create("All hands", ids), members, cities)
        assert len(viz.points) == 5
        assert len(viz.arcs) == 10

    def test_unresolved_city_excluded_and_warned(self, members, meetings, cities):
        alice = members.find_or_create("Alice", "Paris")
        zed = members.find_or_create("Zed", "Atlantis")
        meeting = meetings.create("Standup", [alice.id, zed.id])

        viz = compute_visualization(meeting, members, cities)

        assert [p.member_id for p in viz.points] == [alice.id]
        assert viz.arcs == []
        assert len(viz.warnings) == 1
        warning = viz.warnings[0]
        assert warning.member_id == zed.id
        assert warning.city == "Atlantis"
        assert "Atlantis" in str(warning)
        assert "Zed" in str(warning)

    def test_unknown_member_ids_dropped(self, members, meetings, cities):
        alice = members.find_or_create("Alice", "Paris")
        meeting = meetings.create("Standup", ["ghost", alice.id])
        viz = compute_visualization(meeting, members, cities)
        assert [p.member_id for p in viz.points] == [alice.id]
        assert viz.warnings == []

    def test_participant_order_preserved(self, members, meetings, cities):
        a = members.find_or_create("A", "Tokyo")
        b = members.find_or_create("B", "Paris")
        c = members.find_or_create("C", "London")
        viz = compute_visualization(meetings.create("Sync", [c.id, a.id, b.id]), members, cities)
        assert [p.member_name for p in viz.points] == ["C", "A", "B"]

    def test_recomputed_after_city_data_changes(self, members, meetings, city_records):
        from meetglobe.cities import CityResolver

        data = list(city_records)
        resolver = CityResolver(lambda: data)
        zed = members.find_or_create("Zed", "Atlantis")
        alice = members.find_or_create("Alice", "Paris")
        meeting = meetings.create("Standup", [zed.id, alice.id])

        assert len(compute_visualization(meeting, members, resolver).points) == 1

        data.append({"normalizedName": "atlantis", "displayName": "Atlantis", "lat": 31.0, "lng": -24.0})
        resolver.refresh()
        viz = compute_visualization(meeting, members, resolver)
        assert len(viz.points) == 2
        assert len(viz.arcs) == 1

    def test_to_dict_shape(self, members, meetings, cities):
        alice = members.find_or_create("Alice", "Paris")
        bob = members.find_or_create("Bob", "London")
        payload = compute_visualization(meetings.create("Standup", [alice.id, bob.id]), members, cities).to_dict()
        assert set(payload) == {"points", "arcs", "warnings"}
        assert set(payload["points"][0]) == {"memberId", "memberName", "cityName", "lat", "lng"}
        assert set(payload["arcs"][0]) == {"startLat", "startLng", "endLat", "endLng"}
