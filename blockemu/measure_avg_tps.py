"""Average transactions per second per epoch, for broker and relay modes."""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

from .measure_tool import MeasureModule
from .message import BlockInfoMsg

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Stand-in for a missing time: the earliest representable instant.
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_MAX_NANOS = 2**63 - 1
_MIN_NANOS = -(2**63)


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    """Attach the local zone to naive datetimes; None stays None."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.astimezone()


def _or_zero(moment: Optional[datetime]) -> datetime:
    return _ZERO_TIME if moment is None else moment


def _span_seconds(later: Optional[datetime], earlier: Optional[datetime]) -> float:
    """Seconds from earlier to later, saturating at the int64-nanosecond range."""
    micros = (_or_zero(later) - _or_zero(earlier)) // timedelta(microseconds=1)
    nanos = max(_MIN_NANOS, min(_MAX_NANOS, micros * 1000))
    return nanos / 1e9


def _unix_millis(moment: Optional[datetime]) -> int:
    return (_or_zero(moment) - _UNIX_EPOCH) // timedelta(milliseconds=1)


def _before(a: Optional[datetime], b: Optional[datetime]) -> bool:
    """True when a is strictly earlier than b, a missing time being earliest."""
    return _or_zero(a) < _or_zero(b)


@dataclass
class _EpochTPS:
    executed: float = 0.0
    normal: int = 0
    first: int = 0
    second: int = 0
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class _AvgTPS(MeasureModule):
    _label = ""

    def __init__(self, output_dir=None) -> None:
        super().__init__(output_dir)
        self.epochs: list[_EpochTPS] = []

    @abstractmethod
    def _cross_txs(
        self, block_info: BlockInfoMsg
    ) -> tuple[Sequence[Any], Sequence[Any]]:
        """The first- and second-stage cross-shard transactions of a block."""

    def _epoch(self, epoch: int) -> _EpochTPS:
        if epoch < 0:
            raise ValueError(f"epoch must not be negative, got {epoch}")
        while len(self.epochs) <= epoch:
            self.epochs.append(_EpochTPS())
        return self.epochs[epoch]

    def output_metric_name(self) -> str:
        return "Average_TPS"

    def update_measure_record(self, block_info: BlockInfoMsg) -> None:
        """Count executed transactions and widen the epoch's time span."""
        if block_info.block_body_length == 0:
            return
        first, second = self._cross_txs(block_info)
        counts = self._epoch(block_info.epoch)
        inner = len(block_info.inner_shard_txs)
        earliest = _aware(block_info.propose_time)
        latest = _aware(block_info.commit_time)

        counts.executed += float(inner) + float(len(first) + len(second)) / 2
        counts.normal += inner
        counts.first += len(first)
        counts.second += len(second)

        if counts.start is None or _before(earliest, counts.start):
            counts.start = earliest
        if counts.end is None or _before(counts.end, latest):
            counts.end = latest

    def handle_extra_message(self, msg: bytes) -> None:
        """Extra messages carry nothing for this metric."""

    def output_record(self) -> tuple[list[float], float]:
        """TPS of each epoch and over the whole run."""
        self._write_rows()
        per_epoch: list[float] = []
        total_tx = 0.0
        earliest: Optional[datetime] = datetime.now(timezone.utc)
        latest: Optional[datetime] = None
        for e in self.epochs:
            per_epoch.append(self._ratio(e.executed, _span_seconds(e.end, e.start)))
            total_tx += e.executed
            if _before(e.start, earliest):
                earliest = e.start
            if _before(latest, e.end):
                latest = e.end
        return per_epoch, self._ratio(total_tx, _span_seconds(latest, earliest))

    def _write_rows(self) -> None:
        label = self._label
        header = [
            "EpochID",
            "Total tx # in this epoch",
            "Normal tx # in this epoch",
            f"{label}1 tx # in this epoch",
            f"{label}2 tx # in this epoch",
            "Epoch start time",
            "Epoch end time",
            "Avg. TPS of this epoch",
        ]
        rows = [
            [
                str(eid),
                self._format_float(e.executed),
                str(e.normal),
                str(e.first),
                str(e.second),
                str(_unix_millis(e.start)),
                str(_unix_millis(e.end)),
                self._format_float(
                    self._ratio(e.executed, _span_seconds(e.end, e.start))
                ),
            ]
            for eid, e in enumerate(self.epochs)
        ]
        self._write_csv(header, rows)


class AvgTPSBroker(_AvgTPS):
    """Average TPS where cross-shard transactions go through brokers."""

    _label = "Broker"

    def _cross_txs(self, block_info):
        return block_info.broker1_txs, block_info.broker2_txs

    def update_measure_record(self, block_info: BlockInfoMsg) -> None:
        super().update_measure_record(block_info)

    def handle_extra_message(self, msg: bytes) -> None:
        super().handle_extra_message(msg)

    def output_metric_name(self) -> str:
        return super().output_metric_name()

    def output_record(self) -> tuple[list[float], float]:
        return super().output_record()


class AvgTPSRelay(_AvgTPS):
    """Average TPS where cross-shard transactions are relayed."""

    _label = "Relay"

    def _cross_txs(self, block_info):
        return block_info.relay1_txs, block_info.relay2_txs

    def update_measure_record(self, block_info: BlockInfoMsg) -> None:
        super().update_measure_record(block_info)

    def handle_extra_message(self, msg: bytes) -> None:
        super().handle_extra_message(msg)

    def output_metric_name(self) -> str:
        return super().output_metric_name()

    def output_record(self) -> tuple[list[float], float]:
        return super().output_record()