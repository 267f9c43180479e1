"""Core data types for brokers, topics and partition replica assignments."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum


class AssignmentError(ValueError):
    """Raised when a set of partition assignments is malformed."""


@dataclass
class BrokerInfo:
    """A broker in the cluster and the rack it lives in."""

    id: int
    rack: str = ""


@dataclass
class PartitionAssignment:
    """The ordered replicas of one partition; the first replica is the leader."""

    id: int
    replicas: list[int] = field(default_factory=list)

    def index(self, broker_id: int) -> int:
        """Return the position of the broker in the replicas, or -1 if absent."""
        try:
            return self.replicas.index(broker_id)
        except ValueError:
            return -1

    def distinct_racks(self, broker_racks: Mapping[int, str]) -> set[str]:
        """Return the set of racks that hold a replica of this partition."""
        return {broker_racks.get(replica, "") for replica in self.replicas}


@dataclass
class TopicInfo:
    """A topic with the replica layout of its partitions."""

    name: str
    partitions: list[PartitionAssignment] = field(default_factory=list)


class PlacementStrategy(str, Enum):
    """How the replicas of a topic should be laid out across racks."""

    ANY = "any"
    STATIC = "static"
    STATIC_IN_RACK = "static-in-rack"
    BALANCED_LEADERS = "balanced-leaders"
    IN_RACK = "in-rack"
    CROSS_RACK = "cross-rack"

    def __str__(self) -> str:
        return self.value


class PickerMethod(str, Enum):
    """How ties are broken when choosing brokers."""

    CLUSTER_USE = "cluster-use"
    LOWEST_INDEX = "lowest-index"
    RANDOMIZED = "randomized"

    def __str__(self) -> str:
        return self.value


@dataclass
class TopicPlacementConfig:
    """The desired placement of a topic's replicas."""

    strategy: PlacementStrategy = PlacementStrategy.ANY
    picker: PickerMethod = PickerMethod.LOWEST_INDEX
    static_assignments: list[list[int]] = field(default_factory=list)
    static_rack_assignments: list[str] = field(default_factory=list)


def replicas_to_assignments(replicas: Iterable[Sequence[int]]) -> list[PartitionAssignment]:
    """Build assignments from replica lists, numbering partitions from zero."""
    return [
        PartitionAssignment(id=position, replicas=list(row))
        for position, row in enumerate(replicas)
    ]


def assignments_to_replicas(assignments: Sequence[PartitionAssignment]) -> list[list[int]]:
    """Return the replica lists of assignments whose ids run from zero in order."""
    rows = []
    for position, assignment in enumerate(assignments):
        if assignment.id != position:
            raise AssignmentError(
                f"Partition id {assignment.id} does not match its position {position}"
            )
        rows.append(list(assignment.replicas))
    return rows


def check_assignments(assignments: Sequence[PartitionAssignment]) -> None:
    """Raise AssignmentError unless the assignments are well formed."""
    if not assignments:
        return
    replication = len(assignments[0].replicas)
    for position, assignment in enumerate(assignments):
        if assignment.id != position:
            raise AssignmentError(
                f"Partition id {assignment.id} does not match its position {position}"
            )
        if not assignment.replicas:
            raise AssignmentError(f"Partition {assignment.id} has no replicas")
        if len(assignment.replicas) != replication:
            raise AssignmentError(
                f"Partition {assignment.id} has {len(assignment.replicas)} replicas, "
                f"expected {replication}"
            )
        if len(set(assignment.replicas)) != len(assignment.replicas):
            raise AssignmentError(
                f"Partition {assignment.id} has repeated replicas: {assignment.replicas}"
            )


def copy_assignments(assignments: Iterable[PartitionAssignment]) -> list[PartitionAssignment]:
    """Return an independent copy of the assignments."""
    return [PartitionAssignment(a.id, list(a.replicas)) for a in assignments]


def distinct_racks(brokers: Iterable[BrokerInfo]) -> list[str]:
    """Return the sorted racks that the brokers live in."""
    return sorted({broker.rack for broker in brokers})


def broker_racks(brokers: Iterable[BrokerInfo]) -> dict[int, str]:
    """Map each broker id to its rack."""
    return {broker.id: broker.rack for broker in brokers}


def brokers_per_rack(brokers: Iterable[BrokerInfo]) -> dict[str, list[int]]:
    """Map each rack to the ids of its brokers, in broker order."""
    result: dict[str, list[int]] = {}
    for broker in brokers:
        result.setdefault(broker.rack, []).append(broker.id)
    return result


def max_replication(topics: Iterable[TopicInfo]) -> int:
    """Return the largest replica count of any partition in the topics."""
    return max(
        (len(p.replicas) for topic in topics for p in topic.partitions),
        default=0,
    )


def make_brokers(num_brokers: int, num_racks: int) -> list[BrokerInfo]:
    """Make brokers numbered from 1, spread round-robin over racks zone1..zoneN."""
    return [
        BrokerInfo(id=b + 1, rack=f"zone{(b % num_racks) + 1}")
        for b in range(num_brokers)
    ]