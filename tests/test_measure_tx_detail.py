import csv
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from blockemu.measure_tx_detail import TxDetail, timestamp_to_string
from blockemu.message import BlockInfoMsg

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@dataclass
class FakeTx:
    tx_hash: bytes
    time: datetime
    raw_tx_hash: bytes = b""


def block(propose, commit, inner=(), r1=(), r2=(), b1=(), b2=()):
    txs = list(inner) + list(r1) + list(r2) + list(b1) + list(b2)
    return BlockInfoMsg(
        block_body_length=len(txs),
        inner_shard_txs=list(inner),
        propose_time=propose,
        commit_time=commit,
        relay1_txs=list(r1),
        relay2_txs=list(r2),
        broker1_txs=list(b1),
        broker2_txs=list(b2),
    )


def read_rows(module):
    path = module.output_dir / "Tx_Details.csv"
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


def test_timestamp_to_string_missing_is_empty():
    assert timestamp_to_string(None) == ""


def test_timestamp_to_string_unix_millis():
    moment = datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)
    assert timestamp_to_string(moment) == "1000"


def test_timestamp_to_string_is_monotonic():
    later = T0 + timedelta(milliseconds=250)
    diff = int(timestamp_to_string(later)) - int(timestamp_to_string(T0))
    assert diff == 250


def test_inner_tx_row(tmp_path):
    module = TxDetail(tmp_path)
    tx = FakeTx(b"\x05", T0)
    propose = T0 + timedelta(seconds=1)
    commit = T0 + timedelta(seconds=2)
    module.update_measure_record(block(propose, commit, inner=[tx]))
    assert module.output_record() == ([], 0.0)
    header, row = read_rows(module)
    assert header[0] == "TxHash (Byte -> Big Int)"
    assert row[0] == "5"
    assert row[1] == timestamp_to_string(T0)
    assert row[2] == timestamp_to_string(propose)
    assert row[3] == timestamp_to_string(commit)
    assert row[4:8] == ["", "", "", ""]
    assert int(row[8]) == int(row[3]) - int(row[1])


def test_relay_stages_share_one_row(tmp_path):
    module = TxDetail(tmp_path)
    r1 = FakeTx(b"\x07", T0)
    r2 = FakeTx(b"\x07", T0 + timedelta(seconds=5))
    c1 = T0 + timedelta(seconds=1)
    c2 = T0 + timedelta(seconds=3)
    module.update_measure_record(block(T0, c1, r1=[r1]))
    module.update_measure_record(block(c1, c2, r2=[r2]))
    module.output_record()
    rows = read_rows(module)
    assert len(rows) == 2
    row = rows[1]
    assert row[4] == timestamp_to_string(c1)
    assert row[5] == timestamp_to_string(c2)
    assert row[3] == row[5]
    assert int(row[8]) == int(row[3]) - int(row[1])


def test_broker_rows_keyed_by_raw_hash(tmp_path):
    module = TxDetail(tmp_path)
    b1 = FakeTx(b"\x01", T0, raw_tx_hash=b"\x09")
    b2 = FakeTx(b"\x02", T0, raw_tx_hash=b"\x09")
    c1 = T0 + timedelta(seconds=1)
    c2 = T0 + timedelta(seconds=2)
    module.update_measure_record(block(T0, c1, b1=[b1]))
    module.update_measure_record(block(c1, c2, b2=[b2]))
    module.output_record()
    rows = read_rows(module)
    assert len(rows) == 2
    row = rows[1]
    assert row[0] == "9"
    assert row[6] == timestamp_to_string(c1)
    assert row[7] == timestamp_to_string(c2)
    assert row[4] == "" and row[5] == ""


def test_empty_block_is_ignored(tmp_path):
    module = TxDetail(tmp_path)
    module.update_measure_record(BlockInfoMsg(block_body_length=0))
    module.output_record()
    assert len(read_rows(module)) == 1


def test_second_stage_only_latency_saturates_positive(tmp_path):
    module = TxDetail(tmp_path)
    module.update_measure_record(
        block(T0, T0 + timedelta(seconds=1), r2=[FakeTx(b"\x03", T0)])
    )
    module.output_record()
    row = read_rows(module)[1]
    assert row[1] == ""
    assert int(row[8]) > 10**12


def test_rows_follow_insertion_order(tmp_path):
    module = TxDetail(tmp_path)
    txs = [FakeTx(bytes([n]), T0) for n in (3, 1, 2)]
    module.update_measure_record(block(T0, T0 + timedelta(seconds=1), inner=txs))
    module.output_record()
    assert [row[0] for row in read_rows(module)[1:]] == ["3", "1", "2"]