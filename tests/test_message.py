from datetime import datetime

import pytest

from blockemu.message import (
    PREFIX_MSG_TYPE_LEN,
    AccountTransferMsg,
    BlockInfoMsg,
    MessageType,
    Node,
    decode_account_transfer_msg,
    merge_message,
    split_message,
)


def test_merge_message_layout():
    merged = merge_message(MessageType.STOP, b"this is a stop message~")
    assert len(merged) == PREFIX_MSG_TYPE_LEN + len(b"this is a stop message~")
    assert merged[:4] == b"stop"
    assert merged[4:PREFIX_MSG_TYPE_LEN] == bytes(PREFIX_MSG_TYPE_LEN - 4)
    assert merged[PREFIX_MSG_TYPE_LEN:] == b"this is a stop message~"


@pytest.mark.parametrize("msg_type", list(MessageType))
def test_split_round_trip_every_type(msg_type):
    kind, content = split_message(merge_message(msg_type, b"payload\n"))
    assert kind is msg_type
    assert content == b"payload\n"


def test_split_unknown_type_returns_string():
    kind, content = split_message(merge_message("custom", b"x"))
    assert kind == "custom"
    assert not isinstance(kind, MessageType)
    assert content == b"x"


def test_split_prunes_inner_zero_bytes():
    raw = b"Block\x00Info".ljust(PREFIX_MSG_TYPE_LEN, b"\x00") + b"body"
    kind, content = split_message(raw)
    assert kind is MessageType.BLOCK_INFO
    assert content == b"body"


def test_merge_rejects_long_type():
    with pytest.raises(ValueError):
        merge_message("t" * (PREFIX_MSG_TYPE_LEN + 1), b"")


def test_split_rejects_short_message():
    with pytest.raises(ValueError):
        split_message(b"stop")


def test_account_transfer_round_trip():
    msg = AccountTransferMsg(
        modified_map={"abc": 1, "def": 2},
        addrs=["abc", "def"],
        account_state=[{"balance": 10}, {"balance": 20}],
        atid=3,
    )
    decoded = decode_account_transfer_msg(msg.encode())
    assert decoded == msg


def test_decode_garbage_raises():
    with pytest.raises(ValueError):
        decode_account_transfer_msg(b"not a message")


def test_print_node(capsys):
    Node(node_id=1, shard_id=2, ip_addr="127.0.0.1:8000").print_node()
    assert capsys.readouterr().out == "[1 2 127.0.0.1:8000]\n"


def test_block_info_defaults_are_independent():
    first = BlockInfoMsg()
    second = BlockInfoMsg(epoch=2, commit_time=datetime(2024, 1, 1))
    first.inner_shard_txs.append("tx")
    assert second.inner_shard_txs == []
    assert first.block_body_length == 0
    assert second.epoch == 2