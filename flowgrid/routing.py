"""Material flow routing through the forklift corridor network.

Corridor endpoints become graph nodes; a corridor's run is split wherever
another corridor's endpoint lies on it, so T-junctions connect. Legs snap to
the nearest node and follow the shortest weighted path between nodes.
"""

from __future__ import annotations

import heapq
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, Field

from .geometry import Cell, manhattan
from .models import Activity, Corridor, Door, LayoutSnapshot, Zone

logger = logging.getLogger(__name__)

MAX_SNAP_SQUARES = 15


class CorridorGraph:
    """Undirected graph of forklift corridor waypoints, weighted in squares."""

    def __init__(self) -> None:
        self.nodes: Set[Cell] = set()
        self.adjacency: Dict[Cell, List[Tuple[Cell, int]]] = {}

    def add_edge(self, a: Cell, b: Cell) -> None:
        self.nodes.update((a, b))
        if a == b:
            return
        weight = manhattan(a, b)
        self.adjacency.setdefault(a, []).append((b, weight))
        self.adjacency.setdefault(b, []).append((a, weight))

    def __len__(self) -> int:
        return len(self.nodes)


def _endpoints(corridor: Corridor) -> Tuple[Cell, Cell]:
    return (corridor.start_grid_y, corridor.start_grid_x), (corridor.end_grid_y, corridor.end_grid_x)


def _on_segment(point: Cell, start: Cell, end: Cell) -> bool:
    row, col = point
    return (
        min(start[0], end[0]) <= row <= max(start[0], end[0])
        and min(start[1], end[1]) <= col <= max(start[1], end[1])
        and (start[0] == end[0] == row or start[1] == end[1] == col)
    )


def build_corridor_graph(corridors: Sequence[Corridor]) -> CorridorGraph:
    graph = CorridorGraph()
    forklift = [corridor for corridor in corridors if corridor.type == "forklift"]
    waypoints = {point for corridor in forklift for point in _endpoints(corridor)}

    for corridor in forklift:
        start, end = _endpoints(corridor)
        stops = sorted(
            (point for point in waypoints if _on_segment(point, start, end)),
            key=lambda point: manhattan(start, point),
        )
        if len(stops) == 1:
            graph.add_edge(start, start)
        for a, b in zip(stops, stops[1:]):
            graph.add_edge(a, b)

    logger.debug("Corridor graph: %d nodes from %d forklift corridors", len(graph), len(forklift))
    return graph


def find_nearest_node(graph: CorridorGraph, cell: Cell) -> Optional[Tuple[Cell, int]]:
    """Closest waypoint to ``cell`` and its Manhattan distance; ties keep the first in row/col order."""

    best: Optional[Tuple[Cell, int]] = None
    for node in sorted(graph.nodes):
        distance = manhattan(node, cell)
        if best is None or distance < best[1]:
            best = (node, distance)
    return best


def shortest_corridor_path(graph: CorridorGraph, start: Cell, end: Cell) -> Optional[List[Cell]]:
    """Dijkstra over the corridor graph; None when either node is missing or unreachable."""

    if start not in graph.nodes or end not in graph.nodes:
        return None

    dist: Dict[Cell, int] = {start: 0}
    parents: Dict[Cell, Optional[Cell]] = {start: None}
    queue: List[Tuple[int, Cell]] = [(0, start)]
    done: Set[Cell] = set()
    while queue:
        current_dist, current = heapq.heappop(queue)
        if current in done:
            continue
        done.add(current)
        if current == end:
            break
        for neighbour, weight in graph.adjacency.get(current, []):
            candidate = current_dist + weight
            if neighbour not in dist or candidate < dist[neighbour]:
                dist[neighbour] = candidate
                parents[neighbour] = current
                heapq.heappush(queue, (candidate, neighbour))

    if end not in parents:
        return None
    path: List[Cell] = []
    node: Optional[Cell] = end
    while node is not None:
        path.append(node)
        node = parents[node]
    path.reverse()
    return path


def route_flow_leg(
    source: Cell,
    target: Cell,
    corridors: Sequence[Corridor],
    max_snap: int = MAX_SNAP_SQUARES,
) -> Optional[List[Cell]]:
    """Polyline from ``source`` through the corridor network to ``target``.

    Returns None when there are no forklift corridors, when either end is
    more than ``max_snap`` squares from a waypoint, or when the snapped
    waypoints are not connected.
    """

    graph = build_corridor_graph(corridors)
    if not graph.nodes:
        return None
    snap_from = find_nearest_node(graph, source)
    snap_to = find_nearest_node(graph, target)
    if snap_from is None or snap_to is None:
        return None
    if snap_from[1] > max_snap or snap_to[1] > max_snap:
        return None
    path = shortest_corridor_path(graph, snap_from[0], snap_to[0])
    if path is None:
        return None
    return [source, *path, target]


def polyline_length(points: Sequence[Cell]) -> int:
    return sum(manhattan(a, b) for a, b in zip(points, points[1:]))


def door_center(door: Door) -> Cell:
    if door.edge in ("top", "bottom"):
        return door.grid_y, door.grid_x + door.width // 2
    return door.grid_y + door.width // 2, door.grid_x


class FlowLeg(BaseModel):
    kind: str
    source: str
    target: str
    points: List[Tuple[int, int]]
    squares: float
    weight: float = 1.0
    via_corridors: bool = False


class MaterialTravel(BaseModel):
    """Weighted material travel for one layout, in squares and feet."""

    inbound_squares: float = 0.0
    process_squares: float = 0.0
    outbound_squares: float = 0.0
    total_squares: float = 0.0
    travel_ft: int = 0
    legs: List[FlowLeg] = Field(default_factory=list)


def _sequence_centroids(zones: Sequence[Zone], activities: Sequence[Activity]) -> List[Tuple[str, float, float]]:
    """One station per sequence step at the centroid of every zone in that step."""

    steps: Dict[int, List[Activity]] = {}
    for activity in activities:
        if activity.sequence_order is not None and activity.sequence_order > 0:
            steps.setdefault(activity.sequence_order, []).append(activity)

    stations: List[Tuple[str, float, float]] = []
    for order in sorted(steps):
        ids = {activity.id for activity in steps[order]}
        placed = [zone for zone in zones if zone.activity_id in ids]
        if not placed:
            continue
        cx = sum(z.grid_x + z.grid_width / 2 for z in placed) / len(placed)
        cy = sum(z.grid_y + z.grid_height / 2 for z in placed) / len(placed)
        stations.append((" + ".join(activity.name for activity in steps[order]), cx, cy))
    return stations


def _door_leg(
    kind: str, door: Door, station: Tuple[str, float, float], corridors: Sequence[Corridor], weight: float
) -> FlowLeg:
    name, cx, cy = station
    at_door = door_center(door)
    at_station = (int(cy), int(cx))
    source, target = (at_door, at_station) if kind == "inbound" else (at_station, at_door)
    route = route_flow_leg(source, target, corridors)
    points = route if route is not None else [source, target]
    door_name = door.name or door.id
    return FlowLeg(
        kind=kind,
        source=door_name if kind == "inbound" else name,
        target=name if kind == "inbound" else door_name,
        points=points,
        squares=polyline_length(points) * weight,
        weight=weight,
        via_corridors=route is not None,
    )


def calculate_material_travel(snapshot: LayoutSnapshot) -> MaterialTravel:
    """Inbound, process and outbound travel for a layout.

    Inbound legs run from each inbound door to the first process step and are
    weighted by the door's inbound percentage; outbound legs run from the last
    step to each outbound door. Process legs join consecutive sequence steps
    in a straight line. Door legs follow forklift corridors when a route
    exists and fall back to the direct Manhattan distance otherwise.
    """

    stations = _sequence_centroids(snapshot.zones, snapshot.activities)
    travel = MaterialTravel()
    if not stations:
        return travel

    for door in snapshot.doors:
        if door.has_inbound_material and door.inbound_percentage:
            leg = _door_leg("inbound", door, stations[0], snapshot.corridors, door.inbound_percentage / 100)
            travel.legs.append(leg)
            travel.inbound_squares += leg.squares

    for (name_a, ax, ay), (name_b, bx, by) in zip(stations, stations[1:]):
        squares = ((bx - ax) ** 2 + (by - ay) ** 2) ** 0.5
        travel.legs.append(
            FlowLeg(
                kind="process",
                source=name_a,
                target=name_b,
                points=[(int(ay), int(ax)), (int(by), int(bx))],
                squares=squares,
            )
        )
        travel.process_squares += squares

    for door in snapshot.doors:
        if door.has_outbound_material and door.outbound_percentage:
            leg = _door_leg("outbound", door, stations[-1], snapshot.corridors, door.outbound_percentage / 100)
            travel.legs.append(leg)
            travel.outbound_squares += leg.squares

    travel.total_squares = travel.inbound_squares + travel.process_squares + travel.outbound_squares
    travel.travel_ft = int(travel.total_squares * snapshot.facility.square_size + 0.5)
    logger.debug("Material travel for %s: %d ft over %d legs", snapshot.id, travel.travel_ft, len(travel.legs))
    return travel
