# blockemu

Building blocks for the supervisor of a sharded blockchain emulator. It has
no runtime dependencies beyond the standard library.

## Modules

- `blockemu.params`: `GlobalConfig`, a dataclass that holds the run
  parameters with their defaults. Its `data_write_path`, `log_write_path`
  and `database_write_path` properties are derived from `exp_data_root_dir`.
  `ChainConfig` holds the settings of one shard chain.
  `read_config_file(path)` loads a JSON parameter file, `paramsConfig.json`
  by default. Keys that are missing from the file take zero values. A value
  of the wrong type raises `ValueError`.
- `blockemu.utils`:
  - `addr2shard(addr, shard_num)` maps an address to a shard using the
    address's last eight hex digits.
  - `mod_bytes(data, mod)` reduces a big-endian byte string modulo `mod`.
- `blockemu.message`: the `MessageType` and `RequestType` enums, and
  dataclasses for the messages that pass between nodes and the supervisor.
  These include `BlockInfoMsg`, `InjectTxs`, `PartitionModifiedMap`,
  `AccountTransferMsg`, the broker and relay messages, the view-change
  messages and `Node`.
  - `merge_message(msg_type, content)` frames content behind a 30-byte
    type prefix padded with zero bytes.
  - `split_message(message)` undoes that framing. A type that is not known
    comes back as a plain string.
- `blockemu.stop_signal.StopSignal`: a thread-safe count of empty block
  reports in a row. `gap_enough()` returns true once the count reaches the
  threshold.
- `blockemu.graph`: `Vertex`, and `Graph`, an undirected multigraph kept as
  an adjacency list.
- `blockemu.clpa.CLPAState`: constrained label propagation over the account
  graph.
  - `partition()` returns the accounts that moved, each with its new shard,
    and the number of cross-shard edges.
  - `init_partition()` and `stable_init_partition()` set up a starting
    assignment.
  - `hash()` gives a SHA-256 digest of the deterministic `encode()`.
- `blockemu.network`:
  - `RateLimiter` is a token bucket.
  - `P2PNetwork` sends newline-terminated messages over pooled TCP
    connections in background threads. It applies a simulated delay, jitter
    and bandwidth limit. Pass `on_message` to receive the lines that
    connections read back.
  - A negative `bandwidth` means unlimited. Each send must fit the
    bandwidth, so with `bandwidth=0` sends fail and the failure is logged.
- `blockemu.supervisor_log.new_supervisor_logger(log_dir)`: a logger that
  writes to standard output and to `Supervisor.log` in `log_dir`.
- `blockemu.measure_tool`:
  - `MeasureModule` is the abstract interface that the metric collectors
    implement: `update_measure_record`, `handle_extra_message`,
    `output_metric_name` and `output_record`.
  - `write_metrics_to_csv(output_dir, file_name, col_names, rows)` appends
    rows to a CSV file. It writes the header only when the file is new or
    empty.
- `blockemu.measure_avg_tps`: `AvgTPSBroker` and `AvgTPSRelay` give the
  average transactions per second for each epoch and for the whole run. A
  cross-shard transaction counts as half at each of its two stages.
- `blockemu.measure_tx_detail`:
  - `TxDetail` records the propose and commit timestamps of each
    transaction.
  - `timestamp_to_string(moment)` renders a time as Unix milliseconds, or
    as an empty string when the time is missing.

By default, measurement modules write their CSV files to
`<data_write_path>/supervisor_measureOutput/`. Pass `output_dir` to write
them somewhere else.

## Example

```python
from blockemu.clpa import CLPAState
from blockemu.graph import Vertex

state = CLPAState(weight_penalty=0.5, max_iterations=100, shard_num=4)
state.add_edge(Vertex("00000000000000000001"), Vertex("00000000000000000002"))
moved, cross_edges = state.partition()
```

## What it does not do

The package provides no command-line program and no supervisor loop. It
does not read transaction datasets or inject transactions into shards. It
has no committee logic, no block storage or queries, and no measurement
modules for latency, cross-shard ratio or transaction counts. Callers put
the pieces above together themselves.

## Tests

The test suite uses pytest, which the `test` extra installs.