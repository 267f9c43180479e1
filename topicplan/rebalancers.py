"""Rebalancers that even out broker use within a topic and drain brokers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from topicplan.evaluate import evaluate_assignments
from topicplan.model import (
    AssignmentError,
    BrokerInfo,
    PartitionAssignment,
    TopicPlacementConfig,
    copy_assignments,
)
from topicplan.pickers import Picker


class Rebalancer(ABC):
    """Reassigns replicas so that all brokers are evenly represented."""

    @abstractmethod
    def rebalance(
        self,
        topic: str,
        curr: Sequence[PartitionAssignment],
        brokers_to_remove: Collection[int],
    ) -> list[PartitionAssignment]:
        """Return rebalanced assignments with the listed brokers removed."""


@dataclass
class BrokerCount:
    """How often a broker is used at one replica position and in the whole topic."""

    broker_id: int
    index_count: int = 0
    total_count: int = 0
    partitions: list[int] = field(default_factory=list)
    to_be_removed: bool = False
    score: int = 0

    def _sort_key(self) -> tuple[bool, int, int, int]:
        return (self.to_be_removed, self.index_count, self.total_count, self.score)

    def is_smaller(self, other: BrokerCount) -> bool:
        """Order brokers to keep before brokers to remove, then by counts and score."""
        return self._sort_key() < other._sort_key()


def partition_counts(
    broker_counts: Sequence[BrokerCount],
) -> tuple[list[BrokerCount], list[BrokerCount]]:
    """Split sorted counts into a lower half and a reversed upper half.

    The upper part starts at the first broker in the second half that is used
    at the position at all.
    """
    half = len(broker_counts) // 2
    lower: list[BrokerCount] = []
    upper: list[BrokerCount] = []
    for position, count in enumerate(broker_counts):
        if position >= half and count.index_count > 0:
            upper = list(reversed(broker_counts[position:]))
            break
        lower.append(count)
    return lower, upper


class FrequencyRebalancer(Rebalancer):
    """Moves replicas from over-used to under-used brokers, position by position.

    A replacement is made when it improves the balance at that position, or is
    neutral there but improves the balance across the topic, and the result
    still satisfies the placement config. Brokers to remove count as the most
    used. The picker's scores break ties between brokers and order partitions.
    """

    def __init__(
        self,
        brokers: Sequence[BrokerInfo],
        picker: Picker,
        placement_config: TopicPlacementConfig,
    ) -> None:
        self.brokers = list(brokers)
        self.picker = picker
        self.placement_config = placement_config

    def rebalance(self, topic, curr, brokers_to_remove):
        if not evaluate_assignments(curr, self.brokers, self.placement_config):
            raise AssignmentError("Starting assignments do not satisfy placement config")

        desired = copy_assignments(curr)
        to_remove = set(brokers_to_remove)
        replication = len(desired[0].replicas) if desired else 0

        for index in range(replication):
            while self._swap_once(desired, topic, index, to_remove):
                pass

        for assignment in desired:
            for broker_id in assignment.replicas:
                if broker_id in to_remove:
                    raise AssignmentError(
                        f"Could not find a feasible replacement for broker {broker_id}"
                    )
        return desired

    def _swap_once(
        self,
        desired: list[PartitionAssignment],
        topic: str,
        index: int,
        to_remove: Collection[int],
    ) -> bool:
        counts = self.broker_counts(desired, index, topic, to_remove)
        lower, upper = partition_counts(counts)
        for upper_count in upper:
            for lower_count in lower:
                if not self.should_try_replace(lower_count, upper_count):
                    continue
                for partition in upper_count.partitions:
                    if self._try_replacement(
                        desired, lower_count.broker_id, partition, index
                    ):
                        return True
        return False

    def broker_counts(
        self,
        curr: Sequence[PartitionAssignment],
        index: int,
        topic: str,
        to_remove: Collection[int],
    ) -> list[BrokerCount]:
        """Return per-broker usage at the position, sorted from least to most used."""
        totals: Counter[int] = Counter()
        index_partitions: dict[int, list[int]] = {}
        for assignment in curr:
            for position, broker_id in enumerate(assignment.replicas):
                totals[broker_id] += 1
                if position == index:
                    index_partitions.setdefault(broker_id, []).append(assignment.id)

        counts = []
        for broker in self.brokers:
            partitions = index_partitions.get(broker.id, [])
            scores = {
                p: self.picker.score_broker(topic, broker.id, p, index) for p in partitions
            }
            counts.append(
                BrokerCount(
                    broker_id=broker.id,
                    index_count=len(partitions),
                    total_count=totals[broker.id],
                    partitions=sorted(partitions, key=scores.__getitem__),
                    to_be_removed=broker.id in to_remove,
                    score=self.picker.score_broker(topic, broker.id, 0, index),
                )
            )
        counts.sort(key=BrokerCount._sort_key)
        return counts

    def should_try_replace(
        self, lower_count: BrokerCount, higher_count: BrokerCount
    ) -> bool:
        """Return whether moving a slot from the higher broker to the lower one helps."""
        if higher_count.to_be_removed and higher_count.index_count > 0:
            return True
        if lower_count.to_be_removed:
            return False
        if lower_count.index_count + 1 < higher_count.index_count:
            return True
        if lower_count.index_count + 1 == higher_count.index_count:
            return lower_count.total_count + 1 < higher_count.total_count
        return False

    def _try_replacement(
        self,
        curr: list[PartitionAssignment],
        lower_broker: int,
        upper_partition: int,
        index: int,
    ) -> bool:
        replicas = curr[upper_partition].replicas
        upper_broker = replicas[index]
        replicas[index] = lower_broker
        try:
            if evaluate_assignments(curr, self.brokers, self.placement_config):
                return True
        except ValueError:
            pass
        replicas[index] = upper_broker
        return False