"""Pickers choose brokers for replica slots, breaking ties in different ways."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence

from topicplan.model import BrokerInfo, PartitionAssignment, TopicInfo, max_replication

KeySorter = Callable[[Mapping[int, int]], list[int]]

_FNV32_OFFSET = 2166136261
_FNV32_PRIME = 16777619


class NoFeasibleChoiceError(Exception):
    """Raised when a picker finds no feasible choice among the offered ones."""

    def __init__(self, message: str = "Picker could not find a feasible choice") -> None:
        super().__init__(message)


def fnv32(data: bytes) -> int:
    """Return the 32-bit FNV-1 hash of the data."""
    value = _FNV32_OFFSET
    for byte in data:
        value = (value * _FNV32_PRIME) & 0xFFFFFFFF
        value ^= byte
    return value


def sorted_keys(mapping: Mapping[int, int]) -> list[int]:
    """Return the keys of the mapping in ascending order."""
    return sorted(mapping)


def sorted_keys_by_value(
    mapping: Mapping[int, int], ascending: bool, key_sorter: KeySorter
) -> list[int]:
    """Sort keys by their values; ties keep the order given by key_sorter."""
    return sorted(key_sorter(mapping), key=lambda k: mapping[k], reverse=not ascending)


def shuffled_keys(mapping: Mapping[int, int], seed: str) -> list[int]:
    """Return the keys in an order that is random but fixed by the seed."""
    keys = sorted(mapping)
    random.Random(seed).shuffle(keys)
    return keys


def _pick_new_by_position_frequency(
    broker_choices: Sequence[int],
    curr: list[PartitionAssignment],
    partition: int,
    index: int,
    key_sorter: KeySorter,
) -> None:
    if not broker_choices:
        raise NoFeasibleChoiceError()

    counts = {choice: 0 for choice in broker_choices}
    for assignment in curr:
        replica = assignment.replicas[index]
        if replica in counts:
            counts[replica] += 1

    target = curr[partition]
    for broker in sorted_keys_by_value(counts, True, key_sorter):
        if target.index(broker) == -1:
            target.replicas[index] = broker
            return
    raise NoFeasibleChoiceError()


def _sort_removals_by_position_frequency(
    partition_choices: list[int],
    curr: Sequence[PartitionAssignment],
    index: int,
    key_sorter: KeySorter,
) -> None:
    if not partition_choices:
        raise NoFeasibleChoiceError()

    counts: dict[int, int] = {}
    for partition in partition_choices:
        replica = curr[partition].replicas[index]
        if replica >= 0:
            counts[replica] = counts.get(replica, 0) + 1

    ranks = {
        broker: rank
        for rank, broker in enumerate(sorted_keys_by_value(counts, False, key_sorter))
    }
    partition_choices.sort(key=lambda p: ranks.get(curr[p].replicas[index], 0))


class Picker(ABC):
    """Chooses replicas subject to constraints imposed by the caller."""

    @abstractmethod
    def pick_new(
        self,
        topic: str,
        broker_choices: Sequence[int],
        curr: list[PartitionAssignment],
        partition: int,
        index: int,
    ) -> None:
        """Set the replica at (partition, index) in curr to one of broker_choices."""

    @abstractmethod
    def sort_removals(
        self,
        topic: str,
        partition_choices: list[int],
        curr: Sequence[PartitionAssignment],
        index: int,
    ) -> None:
        """Sort partition_choices in place by priority for replacing the replica at index."""

    @abstractmethod
    def score_broker(self, topic: str, broker_id: int, partition: int, index: int) -> int:
        """Return a static score; higher means more likely to be removed."""


class LowestIndexPicker(Picker):
    """Breaks ties in favour of the lowest broker id."""

    def pick_new(self, topic, broker_choices, curr, partition, index):
        _pick_new_by_position_frequency(broker_choices, curr, partition, index, sorted_keys)

    def sort_removals(self, topic, partition_choices, curr, index):
        _sort_removals_by_position_frequency(partition_choices, curr, index, sorted_keys)

    def score_broker(self, topic, broker_id, partition, index):
        return broker_id


class ClusterUsePicker(Picker):
    """Breaks ties using how often each broker appears across the whole cluster."""

    def __init__(self, brokers: Sequence[BrokerInfo], topics: Sequence[TopicInfo]) -> None:
        self._counts_by_position: list[dict[int, int]] = [
            {broker.id: 0 for broker in brokers} for _ in range(max_replication(topics))
        ]
        for topic in topics:
            for partition in topic.partitions:
                for position, replica in enumerate(partition.replicas):
                    counts = self._counts_by_position[position]
                    counts[replica] = counts.get(replica, 0) + 1

    def _key_sorter(self, index: int, ascending: bool) -> KeySorter:
        counts = self._counts_by_position[index]

        def sorter(mapping: Mapping[int, int]) -> list[int]:
            return sorted(
                sorted(mapping), key=lambda k: counts.get(k, 0), reverse=not ascending
            )

        return sorter

    def pick_new(self, topic, broker_choices, curr, partition, index):
        _pick_new_by_position_frequency(
            broker_choices, curr, partition, index, self._key_sorter(index, True)
        )

    def sort_removals(self, topic, partition_choices, curr, index):
        _sort_removals_by_position_frequency(
            partition_choices, curr, index, self._key_sorter(index, False)
        )

    def score_broker(self, topic, broker_id, partition, index):
        return self._counts_by_position[index].get(broker_id, 0)


class RandomizedPicker(Picker):
    """Breaks ties with a shuffle that is repeatable for the same inputs."""

    def pick_new(self, topic, broker_choices, curr, partition, index):
        seed = f"{topic}-{partition}-{index}"
        _pick_new_by_position_frequency(
            broker_choices, curr, partition, index, lambda m: shuffled_keys(m, seed)
        )

    def sort_removals(self, topic, partition_choices, curr, index):
        choices_str = "[" + " ".join(str(p) for p in partition_choices) + "]"
        seed = f"{topic}-{choices_str}-{index}"
        _sort_removals_by_position_frequency(
            partition_choices, curr, index, lambda m: shuffled_keys(m, seed)
        )

    def score_broker(self, topic, broker_id, partition, index):
        return fnv32(f"{topic}-{broker_id}-{partition}-{index}".encode())