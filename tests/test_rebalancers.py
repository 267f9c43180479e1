import pytest

from topicplan.evaluate import evaluate_assignments
from topicplan.model import (
    AssignmentError,
    PlacementStrategy,
    TopicPlacementConfig,
    assignments_to_replicas,
    check_assignments,
    make_brokers,
    replicas_to_assignments,
)
from topicplan.pickers import LowestIndexPicker, RandomizedPicker
from topicplan.rebalancers import (
    BrokerCount,
    FrequencyRebalancer,
    partition_counts,
)

BIG = [
    [1, 2, 3], [4, 5, 6], [7, 8, 9],
    [1, 2, 3], [4, 5, 6], [7, 8, 9],
    [1, 2, 3], [4, 5, 6], [7, 8, 9],
]


def _rebalance(rebalancer, curr, to_remove=(), topic=""):
    desired = rebalancer.rebalance(topic, replicas_to_assignments(curr), list(to_remove))
    check_assignments(desired)
    return assignments_to_replicas(desired)


def _any_rebalancer(picker):
    return FrequencyRebalancer(
        make_brokers(12, 3), picker, TopicPlacementConfig(strategy=PlacementStrategy.ANY)
    )


@pytest.mark.parametrize(
    "curr,to_remove,expected",
    [
        (
            [[1, 2, 3], [1, 4, 5], [3, 2, 7]],
            [],
            [[6, 9, 3], [1, 4, 5], [8, 2, 7]],
        ),
        (
            [[1, 2, 3], [1, 4, 5], [3, 2, 7]],
            [1, 7],
            [[6, 10, 3], [8, 4, 5], [9, 2, 11]],
        ),
        (
            [[1, 2, 3], [4, 5, 6], [7, 8, 9]],
            [1, 2, 3, 4, 5, 6, 7, 8, 9],
            [[12, 10, 11], [11, 10, 12], [10, 11, 12]],
        ),
        (
            BIG,
            [],
            [
                [12, 4, 8], [11, 1, 2], [10, 7, 1],
                [5, 11, 4], [3, 10, 7], [2, 12, 5],
                [1, 2, 3], [4, 5, 6], [7, 8, 9],
            ],
        ),
        (
            BIG,
            [1],
            [
                [10, 6, 4], [3, 7, 2], [2, 4, 5],
                [11, 10, 8], [8, 12, 7], [5, 11, 10],
                [12, 2, 3], [4, 5, 6], [7, 8, 9],
            ],
        ),
    ],
    ids=["simple", "simple-removals", "large-removals", "big", "big-removals"],
)
def test_frequency_rebalancer_any_lowest_index(curr, to_remove, expected):
    assert _rebalance(_any_rebalancer(LowestIndexPicker()), curr, to_remove) == expected


@pytest.mark.parametrize("curr", [[[1, 2, 3], [1, 4, 5], [3, 2, 7]], BIG])
def test_frequency_rebalancer_any_randomized(curr):
    rebalancer = _any_rebalancer(RandomizedPicker())
    result = _rebalance(rebalancer, curr)

    assert result != curr
    for position in range(3):
        column = [row[position] for row in result]
        assert len(column) == len(set(column))
    assert _rebalance(_any_rebalancer(RandomizedPicker()), curr) == result


def test_frequency_rebalancer_randomized_removes_brokers():
    result = _rebalance(_any_rebalancer(RandomizedPicker()), BIG, [1, 2])
    used = {broker for row in result for broker in row}

    assert len(result) == len(BIG)
    assert 1 not in used
    assert 2 not in used
    assert used <= set(range(3, 13))


def test_frequency_rebalancer_in_rack():
    brokers = make_brokers(12, 3)
    rebalancer = FrequencyRebalancer(
        brokers,
        LowestIndexPicker(),
        TopicPlacementConfig(strategy=PlacementStrategy.IN_RACK),
    )
    curr = [[1, 4, 7], [2, 5, 8], [3, 6, 9], [4, 7, 1], [5, 8, 2], [6, 9, 3]]
    result = _rebalance(rebalancer, curr)
    assert result == [
        [1, 4, 7], [2, 5, 8], [3, 6, 9], [10, 7, 1], [11, 8, 2], [12, 9, 3]
    ]
    assert evaluate_assignments(
        replicas_to_assignments(result),
        brokers,
        TopicPlacementConfig(strategy=PlacementStrategy.IN_RACK),
    )


def test_frequency_rebalancer_rejects_unsatisfied_start():
    rebalancer = FrequencyRebalancer(
        make_brokers(12, 3),
        LowestIndexPicker(),
        TopicPlacementConfig(strategy=PlacementStrategy.IN_RACK),
    )
    with pytest.raises(AssignmentError, match="do not satisfy"):
        rebalancer.rebalance("t", replicas_to_assignments([[1, 2, 3]]), [])


def test_frequency_rebalancer_infeasible_removal():
    rebalancer = FrequencyRebalancer(
        make_brokers(3, 3),
        LowestIndexPicker(),
        TopicPlacementConfig(strategy=PlacementStrategy.ANY),
    )
    with pytest.raises(AssignmentError, match="broker 1"):
        rebalancer.rebalance("t", replicas_to_assignments([[1, 2, 3]]), [1])


def test_broker_counts():
    rebalancer = FrequencyRebalancer(
        make_brokers(6, 3),
        LowestIndexPicker(),
        TopicPlacementConfig(strategy=PlacementStrategy.IN_RACK),
    )
    counts = rebalancer.broker_counts(
        replicas_to_assignments([[1, 2, 3], [3, 4, 5], [6, 1, 2], [6, 1, 3]]),
        0,
        "test-topic",
        {3},
    )
    assert counts == [
        BrokerCount(broker_id=4, index_count=0, total_count=1, partitions=[], score=4),
        BrokerCount(broker_id=5, index_count=0, total_count=1, partitions=[], score=5),
        BrokerCount(broker_id=2, index_count=0, total_count=2, partitions=[], score=2),
        BrokerCount(broker_id=1, index_count=1, total_count=3, partitions=[0], score=1),
        BrokerCount(broker_id=6, index_count=2, total_count=2, partitions=[2, 3], score=6),
        BrokerCount(
            broker_id=3,
            index_count=1,
            total_count=3,
            partitions=[1],
            score=3,
            to_be_removed=True,
        ),
    ]


def test_broker_count_comparison():
    count1 = BrokerCount(broker_id=1, index_count=2, total_count=3)
    count2 = BrokerCount(broker_id=2, index_count=2, total_count=3)
    count3 = BrokerCount(broker_id=3, index_count=4, total_count=3)
    count4 = BrokerCount(broker_id=4, index_count=4, total_count=5, score=20)
    count5 = BrokerCount(broker_id=5, index_count=4, total_count=5, score=50)
    count6 = BrokerCount(
        broker_id=6, index_count=1, total_count=2, score=30, to_be_removed=True
    )

    assert count1.is_smaller(count2) is False
    assert count1.is_smaller(count3) is True
    assert count3.is_smaller(count4) is True
    assert count4.is_smaller(count5) is True
    assert count6.is_smaller(count5) is False


def test_partition_broker_counts():
    lower, upper = partition_counts(
        [
            BrokerCount(broker_id=1, index_count=2),
            BrokerCount(broker_id=2, index_count=2),
            BrokerCount(broker_id=3, index_count=4),
            BrokerCount(broker_id=4, index_count=4),
            BrokerCount(broker_id=5, index_count=4),
        ]
    )
    assert [c.broker_id for c in lower] == [1, 2]
    assert [c.broker_id for c in upper] == [5, 4, 3]

    lower2, upper2 = partition_counts(
        [
            BrokerCount(broker_id=1, index_count=0),
            BrokerCount(broker_id=2, index_count=0),
            BrokerCount(broker_id=3, index_count=0),
            BrokerCount(broker_id=4, index_count=0),
            BrokerCount(broker_id=5, index_count=2, to_be_removed=True),
            BrokerCount(broker_id=6, index_count=2),
        ]
    )
    assert [c.broker_id for c in lower2] == [1, 2, 3, 4]
    assert [c.broker_id for c in upper2] == [6, 5]


def test_broker_count_should_replace():
    count1 = BrokerCount(broker_id=1, index_count=2, total_count=3)
    count2 = BrokerCount(broker_id=2, index_count=2, total_count=3)
    count3 = BrokerCount(broker_id=3, index_count=4, total_count=3)
    count4 = BrokerCount(broker_id=4, index_count=4, total_count=5)
    count5 = BrokerCount(broker_id=5, index_count=5, total_count=7)

    rebalancer = _any_rebalancer(LowestIndexPicker())

    assert rebalancer.should_try_replace(count1, count2) is False
    assert rebalancer.should_try_replace(count1, count3) is True
    assert rebalancer.should_try_replace(count1, count4) is True
    assert rebalancer.should_try_replace(count3, count4) is False
    assert rebalancer.should_try_replace(count4, count5) is True


def test_should_replace_removal_rules():
    rebalancer = _any_rebalancer(LowestIndexPicker())
    removed_used = BrokerCount(broker_id=1, index_count=1, to_be_removed=True)
    removed_lower = BrokerCount(broker_id=2, index_count=0, to_be_removed=True)
    busy = BrokerCount(broker_id=3, index_count=5, total_count=9)
    idle = BrokerCount(broker_id=4, index_count=3, total_count=9)

    assert rebalancer.should_try_replace(idle, removed_used) is True
    assert rebalancer.should_try_replace(removed_lower, busy) is False