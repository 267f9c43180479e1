"""Extenders that choose replicas for partitions added to an existing topic."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from topicplan.model import (
    AssignmentError,
    BrokerInfo,
    PartitionAssignment,
    brokers_per_rack,
    check_assignments,
    copy_assignments,
    distinct_racks,
)
from topicplan.pickers import Picker

logger = logging.getLogger(__name__)


class Extender(ABC):
    """Works out the replicas of new partitions for an existing topic."""

    @abstractmethod
    def extend(
        self,
        topic: str,
        curr: Sequence[PartitionAssignment],
        extra_partitions: int,
    ) -> list[PartitionAssignment]:
        """Return the current assignments followed by the new ones."""


class BalancedExtender(Extender):
    """Adds partitions whose leaders cycle through the racks.

    Followers go in the leader's rack when ``in_rack`` is set, otherwise in the
    following racks of the cycle. The picker chooses a broker in each rack.
    """

    def __init__(
        self, brokers: Sequence[BrokerInfo], in_rack: bool, picker: Picker
    ) -> None:
        self.brokers = list(brokers)
        self.in_rack = in_rack
        self.picker = picker
        self._racks = distinct_racks(self.brokers)
        self._brokers_per_rack = brokers_per_rack(self.brokers)

    def extend(self, topic, curr, extra_partitions):
        if not curr:
            raise AssignmentError("Cannot extend a topic that has no partitions")
        if not self._racks:
            raise AssignmentError("Cannot extend a topic without any brokers")
        if extra_partitions % len(self._racks) != 0:
            logger.warning(
                "Extra partitions are not a multiple of the number of racks, "
                "balancing will not be ideal"
            )

        replication = len(curr[0].replicas)
        if self.in_rack:
            for rack, rack_brokers in self._brokers_per_rack.items():
                if len(rack_brokers) < replication:
                    raise AssignmentError(
                        f"Rack {rack} does not have enough brokers for in-rack placement"
                    )

        desired = copy_assignments(curr)
        num_racks = len(self._racks)
        for offset in range(extra_partitions):
            partition_id = offset + len(curr)
            desired.append(PartitionAssignment(partition_id, [-1] * replication))
            for position in range(replication):
                if self.in_rack:
                    rack = self._racks[offset % num_racks]
                else:
                    rack = self._racks[(offset + position) % num_racks]
                self.picker.pick_new(
                    topic,
                    self._brokers_per_rack.get(rack, []),
                    desired,
                    partition_id,
                    position,
                )
        return desired


@dataclass
class StaticExtender(Extender):
    """Ignores the current layout and returns the fixed assignments it holds."""

    assignments: list[PartitionAssignment] = field(default_factory=list)

    def extend(self, topic, curr, extra_partitions):
        check_assignments(curr)
        return copy_assignments(self.assignments)