"""Assigners that reassign the replicas of existing partitions to meet a placement goal."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from topicplan.model import (
    AssignmentError,
    BrokerInfo,
    PartitionAssignment,
    broker_racks,
    brokers_per_rack,
    check_assignments,
    copy_assignments,
    distinct_racks,
)
from topicplan.pickers import Picker

_MAX_LOOPS = 1000


class Assigner(ABC):
    """Works out new replica placements for the partitions of a topic."""

    @abstractmethod
    def assign(
        self, topic: str, curr: Sequence[PartitionAssignment]
    ) -> list[PartitionAssignment]:
        """Return the desired assignments; the current ones are left untouched."""


class BalancedLeaderAssigner(Assigner):
    """Balances partition leaders across racks.

    Leaders are swapped with followers inside a partition where possible; only
    when no such swap exists is a leader replaced by a new broker, chosen by
    the picker from the under-represented rack.
    """

    def __init__(self, brokers: Sequence[BrokerInfo], picker: Picker) -> None:
        self.brokers = list(brokers)
        self.picker = picker
        self._racks = distinct_racks(self.brokers)
        self._broker_racks = broker_racks(self.brokers)
        self._brokers_per_rack = brokers_per_rack(self.brokers)

    def assign(self, topic, curr):
        check_assignments(curr)
        if self._racks and len(curr) % len(self._racks) != 0:
            raise AssignmentError(
                "Cannot balance leaders because the partition count is not a "
                "multiple of the number of racks"
            )

        desired = copy_assignments(curr)
        loops = 0
        while True:
            loops += 1
            min_rack, max_rack = self._min_max_racks(desired)
            if min_rack == max_rack:
                return desired
            self._replace_leader(topic, desired, max_rack, min_rack)
            if loops > _MAX_LOOPS:
                raise AssignmentError("Too many loops")

    def _min_max_racks(self, curr: Sequence[PartitionAssignment]) -> tuple[str, str]:
        counts = {rack: 0 for rack in self._racks}
        for assignment in curr:
            rack = self._broker_racks.get(assignment.replicas[0], "")
            counts[rack] = counts.get(rack, 0) + 1

        min_rack = max_rack = ""
        min_count = max_count = 0
        for rack in self._racks:
            count = counts[rack]
            if min_rack == "":
                min_rack = max_rack = rack
                min_count = max_count = count
                continue
            if count < min_count:
                min_rack, min_count = rack, count
            if count > max_count:
                max_rack, max_count = rack, count

        if min_count == max_count:
            max_rack = min_rack
        return min_rack, max_rack

    def _replace_leader(
        self,
        topic: str,
        curr: list[PartitionAssignment],
        from_rack: str,
        to_rack: str,
    ) -> None:
        from_partitions = [
            a.id for a in curr if self._broker_racks.get(a.replicas[0], "") == from_rack
        ]
        self.picker.sort_removals(topic, from_partitions, curr, 0)

        for partition in from_partitions:
            replicas = curr[partition].replicas
            leader = replicas[0]
            for position, replica in enumerate(replicas[1:], start=1):
                if self._broker_racks.get(replica, "") == to_rack:
                    replicas[0], replicas[position] = replica, leader
                    return

        self.picker.pick_new(
            topic,
            self._brokers_per_rack.get(to_rack, []),
            curr,
            from_partitions[0],
            0,
        )


class CrossRackAssigner(Assigner):
    """Places the replicas of each partition in racks different from each other.

    Leaders are never changed, so the input should already have balanced leaders.
    """

    def __init__(self, brokers: Sequence[BrokerInfo], picker: Picker) -> None:
        self.brokers = list(brokers)
        self.picker = picker
        self._broker_racks = broker_racks(self.brokers)
        self._brokers_per_rack = brokers_per_rack(self.brokers)

    def assign(self, topic, curr):
        check_assignments(curr)
        if not curr:
            return []
        if len(self._brokers_per_rack) < len(curr[0].replicas):
            raise AssignmentError("Do not have enough racks for cross-rack placement")

        desired = copy_assignments(curr)
        all_racks = set(self._broker_racks.values())

        available_per_partition: list[list[str]] = []
        for assignment in desired:
            used: set[str] = set()
            for position, replica in enumerate(assignment.replicas):
                rack = self._broker_racks.get(replica, "")
                if rack in used:
                    assignment.replicas[position] = -1
                else:
                    used.add(rack)
            available_per_partition.append(sorted(all_racks - used))

        for index, assignment in enumerate(desired):
            available = available_per_partition[index]
            for position, replica in enumerate(assignment.replicas):
                if replica != -1:
                    continue
                target_rack = available.pop(0)
                self.picker.pick_new(
                    topic,
                    self._brokers_per_rack.get(target_rack, []),
                    desired,
                    index,
                    position,
                )
        return desired


class SingleRackAssigner(Assigner):
    """Places every replica of a partition in the same rack as its leader.

    Leaders are never changed, so the input should already have balanced leaders.
    """

    def __init__(self, brokers: Sequence[BrokerInfo], picker: Picker) -> None:
        self.brokers = list(brokers)
        self.picker = picker
        self._broker_racks = broker_racks(self.brokers)
        self._brokers_per_rack = brokers_per_rack(self.brokers)

    def assign(self, topic, curr):
        check_assignments(curr)
        if not curr:
            return []
        replication = len(curr[0].replicas)
        for rack, rack_brokers in self._brokers_per_rack.items():
            if len(rack_brokers) < replication:
                raise AssignmentError(
                    f"Rack {rack} does not have enough brokers for in-rack placement"
                )

        desired = copy_assignments(curr)
        for assignment in desired:
            leader_rack = self._broker_racks.get(assignment.replicas[0], "")
            assignment.replicas = [
                replica if self._broker_racks.get(replica, "") == leader_rack else -1
                for replica in assignment.replicas
            ]

        for index, assignment in enumerate(desired):
            leader_rack = self._broker_racks.get(assignment.replicas[0], "")
            choices = self._brokers_per_rack.get(leader_rack, [])
            for position, replica in enumerate(assignment.replicas):
                if replica == -1:
                    self.picker.pick_new(topic, choices, desired, index, position)
        return desired


@dataclass
class StaticAssigner(Assigner):
    """Ignores the current layout and returns the fixed assignments it holds."""

    assignments: list[PartitionAssignment] = field(default_factory=list)

    def assign(self, topic, curr):
        check_assignments(curr)
        return copy_assignments(self.assignments)


class StaticSingleRackAssigner(Assigner):
    """Keeps all replicas of each partition inside a fixed rack given per partition."""

    def __init__(
        self,
        brokers: Sequence[BrokerInfo],
        rack_assignments: Sequence[str],
        picker: Picker,
    ) -> None:
        self.brokers = list(brokers)
        self.rack_assignments = list(rack_assignments)
        self.picker = picker
        self._broker_racks = broker_racks(self.brokers)
        self._brokers_per_rack = brokers_per_rack(self.brokers)

    def assign(self, topic, curr):
        check_assignments(curr)
        if not curr:
            return []
        replication = len(curr[0].replicas)
        for rack in self.rack_assignments:
            rack_count = len(self._brokers_per_rack.get(rack, []))
            if rack_count == 0:
                raise AssignmentError(f"Could not find any brokers for rack {rack}")
            if rack_count < replication:
                raise AssignmentError(
                    f"Rack {rack} does not have enough brokers for in-rack placement"
                )
        if len(self.rack_assignments) < len(curr):
            raise AssignmentError(
                f"Only {len(self.rack_assignments)} rack assignments for "
                f"{len(curr)} partitions"
            )

        desired = copy_assignments(curr)
        for assignment, target_rack in zip(desired, self.rack_assignments):
            assignment.replicas = [
                replica if self._broker_racks.get(replica, "") == target_rack else -1
                for replica in assignment.replicas
            ]

        for index, (assignment, target_rack) in enumerate(
            zip(desired, self.rack_assignments)
        ):
            choices = self._brokers_per_rack.get(target_rack, [])
            for position, replica in enumerate(assignment.replicas):
                if replica == -1:
                    self.picker.pick_new(topic, choices, desired, index, position)
        return desired