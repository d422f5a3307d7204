"""Wire message types exchanged between nodes, leaders and the supervisor."""

from __future__ import annotations

import pickle
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

PREFIX_MSG_TYPE_LEN = 30


class MessageType(str, Enum):
    PRE_PREPARE = "preprepare"
    PREPARE = "prepare"
    COMMIT = "commit"
    REQUEST_OLD_REQUEST = "requestOldrequest"
    SEND_OLD_REQUEST = "sendOldrequest"
    STOP = "stop"

    RELAY = "relay"
    RELAY_WITH_PROOF = "CRelay&Proof"
    INJECT = "inject"

    BLOCK_INFO = "BlockInfo"
    SEQ_ID_INFO = "SequenceID"

    ACCOUNT_STATE_AND_TX = "AccountState&txs"
    PARTITION_MSG = "PartitionModifiedMap"
    PARTITION_READY = "ready for partition"

    BROKER_RAW_TX = "brokerRawTx"
    BROKER_CONFIRM1 = "brokerConfirm1"
    BROKER_CONFIRM2 = "brokerConfirm2"
    BROKER_TYPE1 = "brokerType1"
    BROKER_TYPE2 = "brokerType2"
    INJECT_BROKER = "InjectTx_Broker"
    BROKER_TX_MAP = "BrokerTxMap"
    ACCOUNT_TRANSFER_MSG_BROKER = "BrokerAS_transfer"
    INNER2CROSS_TX = "innerShardTx_be_crossShard"

    VIEW_CHANGE_PROPOSE = "ViewChangePropose"
    NEW_CHANGE = "NewChange"


class RequestType(str, Enum):
    BLOCK = "Block"
    PARTITION_REQ = "PartitionReq"


@dataclass
class Node:
    node_id: int
    shard_id: int
    ip_addr: str

    def __str__(self) -> str:
        return f"[{self.node_id} {self.shard_id} {self.ip_addr}]"

    def print_node(self) -> str:
        """Print the node as ``[node_id shard_id ip_addr]`` and return that text."""
        text = str(self)
        print(text)
        return text


@dataclass
class Request:
    request_type: RequestType
    msg: bytes = b""
    req_time: Optional[datetime] = None


@dataclass
class PrePrepare:
    request_msg: Request
    digest: bytes
    seq_id: int


@dataclass
class Prepare:
    digest: bytes
    seq_id: int
    sender_node: Node


@dataclass
class Commit:
    digest: bytes
    seq_id: int
    sender_node: Node


@dataclass
class Reply:
    message_id: int
    sender_node: Node
    result: bool


@dataclass
class RequestOldMessage:
    seq_start_height: int
    seq_end_height: int
    server_node: Node
    sender_node: Node


@dataclass
class SendOldMessage:
    seq_start_height: int
    seq_end_height: int
    old_request: list[Request]
    sender_node: Node


@dataclass
class InjectTxs:
    txs: list[Any]
    to_shard_id: int


@dataclass
class BlockInfoMsg:
    """Block summary a shard leader reports to the supervisor."""

    block_body_length: int = 0
    inner_shard_txs: list[Any] = field(default_factory=list)
    epoch: int = 0
    propose_time: Optional[datetime] = None
    commit_time: Optional[datetime] = None
    sender_shard_id: int = 0
    relay1_txs: list[Any] = field(default_factory=list)
    relay2_txs: list[Any] = field(default_factory=list)
    broker1_txs: list[Any] = field(default_factory=list)
    broker2_txs: list[Any] = field(default_factory=list)


@dataclass
class SeqIDinfo:
    sender_shard_id: int
    sender_seq: int


@dataclass
class PartitionModifiedMap:
    partition_modified: dict[str, int] = field(default_factory=dict)


@dataclass
class AccountTransferMsg:
    modified_map: dict[str, int] = field(default_factory=dict)
    addrs: list[str] = field(default_factory=list)
    account_state: list[Any] = field(default_factory=list)
    atid: int = 0

    def encode(self) -> bytes:
        """Serialise the message; decode only data from trusted peers."""
        return pickle.dumps(self)


def decode_account_transfer_msg(content: bytes) -> AccountTransferMsg:
    """Rebuild an AccountTransferMsg from bytes made by ``encode``."""
    try:
        msg = pickle.loads(content)
    except Exception as exc:
        raise ValueError("cannot decode account transfer message") from exc
    if not isinstance(msg, AccountTransferMsg):
        raise ValueError("content is not an account transfer message")
    return msg


@dataclass
class PartitionReady:
    from_shard: int
    now_seq_id: int


@dataclass
class AccountStateAndTx:
    addrs: list[str]
    account_state: list[Any]
    txs: list[Any]
    from_shard: int


@dataclass
class BrokerRawMeg:
    tx: Any
    broker: str
    hlock: int = 0
    snonce: int = 0
    bnonce: int = 0
    signature: bytes = b""


@dataclass
class BrokerType1Meg:
    raw_meg: BrokerRawMeg
    hcurrent: int = 0
    broker: str = ""


@dataclass
class Mag1Confirm:
    tx1_hash: bytes
    raw_meg: BrokerRawMeg


@dataclass
class BrokerType2Meg:
    raw_meg: BrokerRawMeg
    broker: str = ""


@dataclass
class Mag2Confirm:
    tx2_hash: bytes
    raw_meg: BrokerRawMeg


@dataclass
class BrokerTxMap:
    broker_tx2_broker12: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class InnerTx2CrossTx:
    txs: list[Any] = field(default_factory=list)


@dataclass
class Relay:
    txs: list[Any]
    sender_shard_id: int
    sender_seq: int


@dataclass
class RelayWithProof:
    txs: list[Any]
    tx_proofs: list[Any]
    sender_shard_id: int
    sender_seq: int


@dataclass
class ViewChangeMsg:
    cur_view: int
    next_view: int
    seq_id: int
    from_node: int


@dataclass
class NewViewMsg:
    cur_view: int
    next_view: int
    new_seq_id: int
    from_node: int


def merge_message(msg_type: Union[MessageType, str], content: bytes) -> bytes:
    """Prefix content with the message type padded with zero bytes."""
    type_bytes = msg_type.encode("utf-8")
    if len(type_bytes) > PREFIX_MSG_TYPE_LEN:
        raise ValueError(
            f"message type longer than {PREFIX_MSG_TYPE_LEN} bytes: {msg_type!r}"
        )
    return type_bytes.ljust(PREFIX_MSG_TYPE_LEN, b"\x00") + bytes(content)


def split_message(message: bytes) -> tuple[Union[MessageType, str], bytes]:
    """Split a merged message into its type and content.

    A type that is not a known MessageType comes back as a plain string.
    """
    if len(message) < PREFIX_MSG_TYPE_LEN:
        raise ValueError("message is shorter than its type prefix")
    prefix = message[:PREFIX_MSG_TYPE_LEN].replace(b"\x00", b"")
    name = prefix.decode("utf-8", errors="replace")
    content = bytes(message[PREFIX_MSG_TYPE_LEN:])
    try:
        return MessageType(name), content
    except ValueError:
        return name, content