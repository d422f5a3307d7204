"""Emulator configuration: global run parameters and per-chain settings."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from os import PathLike
from typing import Any, Union

SUPERVISOR_SHARD = 2147483647
INIT_BALANCE = int("100000000000000000000000000000000000000000000")
COMMITTEE_METHODS = ("CLPA_Broker", "CLPA", "Broker", "Relay")
MEASURE_BROKER_MODS = (
    "TPS_Broker",
    "TCL_Broker",
    "CrossTxRate_Broker",
    "TxNumberCount_Broker",
)
MEASURE_RELAY_MODS = (
    "TPS_Relay",
    "TCL_Relay",
    "CrossTxRate_Relay",
    "TxNumberCount_Relay",
)

DEFAULT_CONFIG_FILE = "paramsConfig.json"


@dataclass
class GlobalConfig:
    """Parameters of one emulator run."""

    nodes_in_shard: int = 4
    shard_num: int = 4

    consensus_method: int = 0
    pbft_view_change_timeout: int = 10000
    block_interval: int = 5000
    max_block_size_global: int = 2000
    blocksize_in_bytes: int = 20000
    use_blocksize_in_bytes: int = 0
    inject_speed: int = 2000
    total_data_size: int = 160000
    tx_batch_size: int = 16000
    broker_num: int = 10
    relay_with_merkle_proof: int = 0
    exp_data_root_dir: str = "expTest"
    supervisor_addr: str = "127.0.0.1:18800"
    dataset_file: str = "./selectedTxs_300K.csv"
    reconfig_time_gap: int = 50

    delay: int = 0
    jitter_range: int = 0
    bandwidth: int = 0

    @property
    def data_write_path(self) -> str:
        """Directory for measurement results."""
        return self.exp_data_root_dir + "/result/"

    @property
    def log_write_path(self) -> str:
        """Directory for log output."""
        return self.exp_data_root_dir + "/log"

    @property
    def database_write_path(self) -> str:
        """Directory for databases."""
        return self.exp_data_root_dir + "/database/"


@dataclass
class ChainConfig:
    """Settings of one shard chain as seen by one node."""

    chain_id: int = 0
    node_id: int = 0
    shard_id: int = 0
    nodes_per_shard: int = 0
    shard_nums: int = 0
    block_size: int = 0
    block_interval: int = 0
    inject_speed: int = 0
    max_relay_block_size: int = 0


# JSON key -> (attribute, expected type)
_FILE_KEYS: dict[str, tuple[str, type]] = {
    "ConsensusMethod": ("consensus_method", int),
    "PbftViewChangeTimeOut": ("pbft_view_change_timeout", int),
    "ExpDataRootDir": ("exp_data_root_dir", str),
    "Block_Interval": ("block_interval", int),
    "BlocksizeInBytes": ("blocksize_in_bytes", int),
    "BlockSize": ("max_block_size_global", int),
    "UseBlocksizeInBytes": ("use_blocksize_in_bytes", int),
    "InjectSpeed": ("inject_speed", int),
    "TotalDataSize": ("total_data_size", int),
    "TxBatchSize": ("tx_batch_size", int),
    "BrokerNum": ("broker_num", int),
    "RelayWithMerkleProof": ("relay_with_merkle_proof", int),
    "DatasetFile": ("dataset_file", str),
    "ReconfigTimeGap": ("reconfig_time_gap", int),
    "Delay": ("delay", int),
    "JitterRange": ("jitter_range", int),
    "Bandwidth": ("bandwidth", int),
}


def _checked(key: str, value: Any, kind: type) -> Any:
    if value is None:
        return kind()
    if kind is int and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValueError(f"config key {key!r} must be an integer, got {value!r}")
    if kind is str and not isinstance(value, str):
        raise ValueError(f"config key {key!r} must be a string, got {value!r}")
    return value


def read_config_file(
    path: Union[str, PathLike] = DEFAULT_CONFIG_FILE,
) -> GlobalConfig:
    """Read a JSON configuration file; keys it lacks take zero values."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("configuration file must hold a JSON object")

    config = GlobalConfig()
    for key, (attribute, kind) in _FILE_KEYS.items():
        setattr(config, attribute, _checked(key, data.get(key), kind))
    return config


__all__ = [
    "ChainConfig",
    "GlobalConfig",
    "read_config_file",
    "SUPERVISOR_SHARD",
    "INIT_BALANCE",
    "COMMITTEE_METHODS",
    "MEASURE_BROKER_MODS",
    "MEASURE_RELAY_MODS",
]

_ = fields  # dataclass helpers kept importable for callers