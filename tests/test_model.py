import pytest

from topicplan.model import (
    AssignmentError,
    BrokerInfo,
    PartitionAssignment,
    TopicInfo,
    assignments_to_replicas,
    broker_racks,
    brokers_per_rack,
    check_assignments,
    copy_assignments,
    distinct_racks,
    make_brokers,
    max_replication,
    replicas_to_assignments,
)


def test_replicas_round_trip():
    rows = [[1, 2, 3], [3, 4, 5], [5, 6, 7]]
    assignments = replicas_to_assignments(rows)
    assert [a.id for a in assignments] == list(range(len(rows)))
    assert assignments_to_replicas(assignments) == rows


def test_assignments_to_replicas_rejects_out_of_order_ids():
    assignments = [PartitionAssignment(1, [1, 2]), PartitionAssignment(0, [2, 1])]
    with pytest.raises(AssignmentError):
        assignments_to_replicas(assignments)


def test_check_assignments_accepts_valid():
    assignments = replicas_to_assignments([[1, 2, 3], [2, 4, 5]])
    check_assignments(assignments)
    assert assignments_to_replicas(assignments) == [[1, 2, 3], [2, 4, 5]]


@pytest.mark.parametrize(
    "rows",
    [
        [[1, 1, 1]],
        [[1, 2, 3], [4, 5]],
        [[]],
    ],
)
def test_check_assignments_rejects_bad(rows):
    with pytest.raises(AssignmentError):
        check_assignments(replicas_to_assignments(rows))


def test_check_assignments_rejects_wrong_id():
    with pytest.raises(AssignmentError):
        check_assignments([PartitionAssignment(3, [1, 2])])


def test_copy_is_independent():
    original = replicas_to_assignments([[1, 2], [3, 4]])
    copied = copy_assignments(original)
    copied[0].replicas[0] = 99
    assert original[0].replicas == [1, 2]
    assert assignments_to_replicas(copied) == [[99, 2], [3, 4]]


def test_index_and_distinct_racks():
    assignment = PartitionAssignment(0, [4, 7, 2])
    assert assignment.index(7) == 1
    assert assignment.index(5) == -1
    racks = broker_racks(make_brokers(12, 3))
    assert assignment.distinct_racks(racks) == {"zone1", "zone2"}


def test_make_brokers_matches_source_layout():
    brokers = make_brokers(6, 3)
    assert [b.id for b in brokers] == [1, 2, 3, 4, 5, 6]
    assert brokers[0] == BrokerInfo(1, "zone1")
    assert brokers[3].rack == brokers[0].rack


def test_rack_helpers_are_consistent():
    brokers = make_brokers(12, 3)
    racks = distinct_racks(brokers)
    per_rack = brokers_per_rack(brokers)
    assert sorted(per_rack) == racks
    assert sum(len(ids) for ids in per_rack.values()) == len(brokers)
    mapping = broker_racks(brokers)
    for rack, ids in per_rack.items():
        assert all(mapping[i] == rack for i in ids)
        assert ids == sorted(ids)


def test_max_replication():
    topics = [
        TopicInfo("a", replicas_to_assignments([[1, 2], [2, 3]])),
        TopicInfo("b", replicas_to_assignments([[1, 2, 3]])),
    ]
    assert max_replication(topics) == 3
    assert max_replication([]) == 0