"""Per-transaction timestamps collected from block reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .measure_tool import MeasureModule
from .message import BlockInfoMsg

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Longest representable span, in milliseconds; longer spans saturate.
_MAX_SPAN_MS = (2**63 - 1) // 1_000_000


def timestamp_to_string(moment: Optional[datetime]) -> str:
    """Unix time in milliseconds, or an empty string for a missing time.

    Naive datetimes are taken as local time.
    """
    if moment is None:
        return ""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return str((moment - _EPOCH) // timedelta(milliseconds=1))


def _latency_ms(commit: Optional[datetime], propose: Optional[datetime]) -> int:
    if commit is None and propose is None:
        return 0
    if propose is None:
        return _MAX_SPAN_MS
    if commit is None:
        return -_MAX_SPAN_MS
    micros = (commit - propose) // timedelta(microseconds=1)
    millis = -((-micros) // 1000) if micros < 0 else micros // 1000
    return max(-_MAX_SPAN_MS, min(_MAX_SPAN_MS, millis))


@dataclass
class _TxTimes:
    tx_propose: Optional[datetime] = None
    block_propose: Optional[datetime] = None
    tx_commit: Optional[datetime] = None
    relay1_commit: Optional[datetime] = None
    relay2_commit: Optional[datetime] = None
    broker1_commit: Optional[datetime] = None
    broker2_commit: Optional[datetime] = None


class TxDetail(MeasureModule):
    """Records when each transaction was proposed and committed."""

    def __init__(self, output_dir=None) -> None:
        super().__init__(output_dir)
        self.details: dict[bytes, _TxTimes] = {}

    def _entry(self, key) -> _TxTimes:
        return self.details.setdefault(bytes(key), _TxTimes())

    def output_metric_name(self) -> str:
        return "Tx_Details"

    def update_measure_record(self, block_info: BlockInfoMsg) -> None:
        """Record the timestamps of every transaction in the block."""
        if block_info.block_body_length == 0:
            return
        propose = block_info.propose_time
        commit = block_info.commit_time

        for tx in block_info.inner_shard_txs:
            entry = self._entry(tx.tx_hash)
            entry.tx_propose = tx.time
            entry.block_propose = propose
            entry.tx_commit = commit
        for tx in block_info.relay1_txs:
            entry = self._entry(tx.tx_hash)
            entry.tx_propose = tx.time
            entry.block_propose = propose
            entry.relay1_commit = commit
        for tx in block_info.relay2_txs:
            entry = self._entry(tx.tx_hash)
            entry.relay2_commit = commit
            entry.tx_commit = commit
        for tx in block_info.broker1_txs:
            entry = self._entry(tx.raw_tx_hash)
            entry.tx_propose = tx.time
            entry.block_propose = propose
            entry.broker1_commit = commit
        for tx in block_info.broker2_txs:
            entry = self._entry(tx.raw_tx_hash)
            entry.broker2_commit = commit
            entry.tx_commit = commit

    def handle_extra_message(self, msg: bytes) -> None:
        """Extra messages carry nothing for this metric."""

    def output_record(self) -> tuple[list[float], float]:
        """Write the details to CSV; there is no summary value."""
        header = [
            "TxHash (Byte -> Big Int)",
            "Tx propose timestamp",
            "Block propose timestamp",
            "Tx finally commit timestamp",
            "Relay1 Tx commit timestamp (not a relay tx -> nil)",
            "Relay2 Tx commit timestamp (not a relay tx -> nil)",
            "Broker1 Tx commit timestamp (not a broker tx -> nil)",
            "Broker2 Tx commit timestamp (not a broker tx -> nil)",
            "Confirmed latency of this tx (ms)",
        ]
        rows = [
            [
                str(int.from_bytes(key, "big")),
                timestamp_to_string(t.tx_propose),
                timestamp_to_string(t.block_propose),
                timestamp_to_string(t.tx_commit),
                timestamp_to_string(t.relay1_commit),
                timestamp_to_string(t.relay2_commit),
                timestamp_to_string(t.broker1_commit),
                timestamp_to_string(t.broker2_commit),
                str(_latency_ms(t.tx_commit, t.tx_propose)),
            ]
            for key, t in self.details.items()
        ]
        self._write_csv(header, rows)
        return [], 0.0