"""Checking whether partition assignments satisfy a placement strategy."""

from __future__ import annotations

from collections.abc import Sequence

from topicplan.model import (
    BrokerInfo,
    PartitionAssignment,
    PlacementStrategy,
    TopicPlacementConfig,
    assignments_to_replicas,
    broker_racks,
    check_assignments,
    distinct_racks,
)


def _balanced_leaders(leader_rack_counts: dict[str, int]) -> bool:
    counts = leader_rack_counts.values()
    if not counts:
        return True
    return min(counts) == max(counts)


def _min_max_racks(
    assignments: Sequence[PartitionAssignment], brokers: Sequence[BrokerInfo]
) -> tuple[int, int, dict[str, int]]:
    racks_by_broker = broker_racks(brokers)
    leader_rack_counts = {rack: 0 for rack in distinct_racks(brokers)}

    rack_counts = []
    for assignment in assignments:
        leader_rack = racks_by_broker.get(assignment.replicas[0], "")
        leader_rack_counts[leader_rack] = leader_rack_counts.get(leader_rack, 0) + 1
        rack_counts.append(len(assignment.distinct_racks(racks_by_broker)))

    return min(rack_counts, default=0), max(rack_counts, default=0), leader_rack_counts


def evaluate_assignments(
    assignments: Sequence[PartitionAssignment],
    brokers: Sequence[BrokerInfo],
    placement_config: TopicPlacementConfig,
) -> bool:
    """Return whether the assignments are consistent with the placement strategy."""
    check_assignments(assignments)

    min_racks, max_racks, leader_rack_counts = _min_max_racks(assignments, brokers)
    strategy = placement_config.strategy

    if strategy == PlacementStrategy.ANY:
        return True
    if strategy == PlacementStrategy.STATIC:
        return assignments_to_replicas(assignments) == [
            list(row) for row in placement_config.static_assignments
        ]
    if strategy == PlacementStrategy.STATIC_IN_RACK:
        if not (min_racks == 1 and max_racks == 1):
            return False
        expected = placement_config.static_rack_assignments
        if len(expected) != len(assignments):
            return False
        racks_by_broker = broker_racks(brokers)
        return all(
            racks_by_broker.get(assignment.replicas[0], "") == rack
            for assignment, rack in zip(assignments, expected)
        )
    if strategy == PlacementStrategy.BALANCED_LEADERS:
        return _balanced_leaders(leader_rack_counts)
    if strategy == PlacementStrategy.IN_RACK:
        return min_racks == 1 and max_racks == 1
    if strategy == PlacementStrategy.CROSS_RACK:
        racks_by_broker = broker_racks(brokers)
        return all(
            len(a.replicas) == len(a.distinct_racks(racks_by_broker)) for a in assignments
        )
    raise ValueError(f"Unrecognized placementStrategy: {strategy}")