# topicplan

`topicplan` works out where the replicas of a topic's partitions should live
across a set of brokers spread over racks. You give it the current layout as
lists of broker ids, and it returns new `PartitionAssignment` lists. The first
replica of each partition is its leader.

## Modules

- **`topicplan.model`**: the data types and helpers.
  - Types: `BrokerInfo`, `PartitionAssignment`, `TopicInfo` and `TopicPlacementConfig`.
  - Enums: `PlacementStrategy` and `PickerMethod`.
  - Converting between layouts and replica lists: `replicas_to_assignments` and `assignments_to_replicas`.
  - Validation: `check_assignments` raises `AssignmentError` for a layout that is malformed. That covers:
    - ids out of order;
    - empty or uneven replica lists;
    - repeated brokers.
  - Rack helpers: `distinct_racks`, `broker_racks` and `brokers_per_rack`.
  - Other helpers:
    - `copy_assignments` and `max_replication`;
    - `make_brokers(n, racks)`, which numbers brokers from 1 and spreads them round-robin over racks `zone1`..`zoneN`.
- **`topicplan.pickers`**: pickers choose a broker for one replica slot (`pick_new`), rank partitions for removal (`sort_removals`), and give brokers a static score (`score_broker`).
  - `LowestIndexPicker` breaks ties by broker id.
  - `RandomizedPicker` breaks ties in a shuffled order. The shuffle is fixed by the topic, partition and position. Its scores are 32-bit FNV-1 hashes (`fnv32`).
  - `ClusterUsePicker(brokers, topics)` breaks ties by how often each broker is used at each position across the given topics.
  - When no broker fits, the pickers raise `NoFeasibleChoiceError`.
- **`topicplan.evaluate`**: `evaluate_assignments(assignments, brokers, placement_config)` returns whether a layout satisfies a strategy. The strategies are `any`, `static`, `static-in-rack`, `balanced-leaders`, `in-rack` and `cross-rack`.
- **`topicplan.assigners`**: these reshape existing partitions.
  - `BalancedLeaderAssigner` balances leaders across racks. It prefers swapping a leader with one of its own followers.
  - `SingleRackAssigner` keeps each partition's replicas in its leader's rack.
  - `CrossRackAssigner` puts each partition's replicas in distinct racks.
  - `StaticSingleRackAssigner` keeps each partition inside a rack given per partition.
  - `StaticAssigner` returns a fixed layout.
- **`topicplan.extenders`**: these add partitions.
  - `BalancedExtender(brokers, in_rack, picker)` cycles leaders through the racks. With `in_rack` set, followers go in the leader's rack; otherwise they go in the racks that follow it.
  - `StaticExtender` returns a fixed layout.
- **`topicplan.rebalancers`**: `FrequencyRebalancer` evens out broker use position by position. It also moves replicas off the brokers you list in `rebalance(topic, curr, brokers_to_remove)`. Every change must keep the layout valid for the placement config.
- **`topicplan.checks`**: `TopicCheckResults` collects `TopicCheckResult` entries, each named by a `CheckName`.
  - `format_results` renders them as a table. Failed rows are red when colour is on; by default colour is on only when stdout is a terminal.
  - `render_table` is the plain table renderer behind it.
- **`topicplan.prompts`**:
  - `confirm(prompt, skip)` asks a yes/no question on stdin/stdout. It raises `EOFError` when no answer can be read.
  - `format_settings_diff` and `format_missing_keys` render settings tables. Values of `.ms` keys get a ` (N min)` suffix from `time_suffix`.

## Example

```python
from topicplan.model import make_brokers, replicas_to_assignments, assignments_to_replicas
from topicplan.pickers import LowestIndexPicker
from topicplan.assigners import BalancedLeaderAssigner

brokers = make_brokers(12, 3)  # ids 1..12 in racks zone1..zone3
assigner = BalancedLeaderAssigner(brokers, LowestIndexPicker())

current = replicas_to_assignments([[1, 2, 3], [2, 4, 5], [5, 6, 7]])
desired = assigner.assign("my-topic", current)
print(assignments_to_replicas(desired))  # [[1, 2, 3], [2, 4, 5], [6, 5, 7]]
```

Problems are raised as exceptions, never returned as status values:

- `AssignmentError` (a `ValueError`) for malformed or impossible layouts;
- `NoFeasibleChoiceError` when a picker has nothing to choose;
- `ValueError` for an unknown strategy.

## What it does not do

`topicplan` is a planning library only. It does not connect to brokers or to a coordination service. It does not read topic or cluster config files, and it does not create topics. It does not apply assignments, set throttles, run leader elections or take locks. It has no command-line tool. You supply the broker and partition data yourself, then apply the assignments it returns with your own tooling. Likewise, `TopicCheckResults` only records and renders check results; running the checks against a live cluster is up to you.

## Running the tests

```
pip install -e ".[test]"
pytest
```