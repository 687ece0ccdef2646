"""
Globe visualization for a meeting.

Joins a meeting's participant IDs with the member registry and the city
resolver to produce points (one per participant whose city resolves) and arcs
(one per unordered pair of points). Nothing here is cached or persisted: the
result is recomputed on every call because members or cities may have changed.
"""

from typing import List

from .cities import CityResolver
from .logger import get_logger
from .members import MemberRegistry
from .models import Arc, Meeting, Point, UnresolvedCityWarning, Visualization

logger = get_logger()

# Arcs grow as n(n-1)/2; above this many points the payload gets large
LARGE_MEETING_THRESHOLD = 200


def build_arcs(points: List[Point]) -> List[Arc]:
    """Complete graph over points: one arc for every pair i < j."""
    arcs: List[Arc] = []
    for i, start in enumerate(points):
        for end in points[i + 1:]:
            arcs.append(Arc(
                start_lat=start.lat,
                start_lng=start.lng,
                end_lat=end.lat,
                end_lng=end.lng,
            ))
    return arcs


def compute_visualization(
    meeting: Meeting,
    members: MemberRegistry,
    cities: CityResolver,
) -> Visualization:
    """
    Compute points and arcs for a meeting.

    Args:
        meeting: The meeting to visualize
        members: Registry used to resolve participant IDs
        cities: Resolver used to place each member's city

    Returns:
        Visualization with points in participant order, the arcs between
        them, and a warning for every participant whose city did not resolve
    """
    participants = members.get_by_ids(list(meeting.participant_ids))
    dropped = len(meeting.participant_ids) - len(participants)
    if dropped:
        logger.debug("Participant IDs without a member", meeting_id=meeting.id, dropped=dropped)

    points: List[Point] = []
    warnings: List[UnresolvedCityWarning] = []
    for member in participants:
        coords = cities.resolve(member.city)
        if coords is None:
            logger.record_unresolved_city()
            logger.warning("No coordinates found for city", meeting_id=meeting.id, member_id=member.id, city=member.city)
            warnings.append(UnresolvedCityWarning(member_id=member.id, member_name=member.name, city=member.city))
            continue
        points.append(Point(
            member_id=member.id,
            member_name=member.name,
            city_name=member.city,
            lat=coords.lat,
            lng=coords.lng,
        ))

    if len(points) > LARGE_MEETING_THRESHOLD:
        logger.warning(
            "Large meeting: arc count grows quadratically",
            meeting_id=meeting.id,
            points=len(points),
            arcs=len(points) * (len(points) - 1) // 2,
        )

    return Visualization(points=points, arcs=build_arcs(points), warnings=warnings)
