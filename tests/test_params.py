import json

import pytest

from blockemu.params import (
    INIT_BALANCE,
    SUPERVISOR_SHARD,
    ChainConfig,
    GlobalConfig,
    read_config_file,
)


def test_default_paths_follow_root_dir():
    config = GlobalConfig()
    assert config.data_write_path == "expTest/result/"
    assert config.log_write_path == "expTest/log"
    assert config.database_write_path == "expTest/database/"


def test_paths_change_with_root_dir():
    config = GlobalConfig(exp_data_root_dir="run1")
    assert config.data_write_path == "run1/result/"
    assert config.log_write_path == "run1/log"
    assert config.database_write_path == "run1/database/"


def test_source_constants():
    assert SUPERVISOR_SHARD == 2147483647
    assert INIT_BALANCE == int("100000000000000000000000000000000000000000000")
    assert ChainConfig(shard_id=3).shard_id == 3


def test_read_config_file_sets_values(tmp_path):
    path = tmp_path / "paramsConfig.json"
    path.write_text(
        json.dumps(
            {
                "ConsensusMethod": 3,
                "PbftViewChangeTimeOut": 777,
                "ExpDataRootDir": "outdir",
                "Block_Interval": 1234,
                "BlocksizeInBytes": 55,
                "BlockSize": 66,
                "UseBlocksizeInBytes": 1,
                "InjectSpeed": 99,
                "TotalDataSize": 1000,
                "TxBatchSize": 100,
                "BrokerNum": 7,
                "RelayWithMerkleProof": 1,
                "DatasetFile": "data.csv",
                "ReconfigTimeGap": 8,
                "Delay": 11,
                "JitterRange": 12,
                "Bandwidth": 13,
            }
        )
    )
    config = read_config_file(path)
    assert config.consensus_method == 3
    assert config.pbft_view_change_timeout == 777
    assert config.block_interval == 1234
    assert config.blocksize_in_bytes == 55
    assert config.max_block_size_global == 66
    assert config.use_blocksize_in_bytes == 1
    assert config.inject_speed == 99
    assert config.total_data_size == 1000
    assert config.tx_batch_size == 100
    assert config.broker_num == 7
    assert config.relay_with_merkle_proof == 1
    assert config.dataset_file == "data.csv"
    assert config.reconfig_time_gap == 8
    assert (config.delay, config.jitter_range, config.bandwidth) == (11, 12, 13)
    assert config.data_write_path == "outdir/result/"


def test_missing_keys_take_zero_values(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"Delay": 5}))
    config = read_config_file(path)
    assert config.delay == 5
    assert config.inject_speed == 0
    assert config.dataset_file == ""
    # values not read from the file keep their defaults
    assert config.shard_num == GlobalConfig().shard_num
    assert config.supervisor_addr == GlobalConfig().supervisor_addr


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        read_config_file(path)


def test_wrong_type_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"InjectSpeed": "fast"}))
    with pytest.raises(ValueError):
        read_config_file(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_config_file(tmp_path / "absent.json")