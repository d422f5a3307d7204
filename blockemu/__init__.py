"""Sharded blockchain emulator toolkit: configuration, messages, CLPA partitioning, network simulation, stop control and TPS and transaction-detail measurement."""

__version__ = "0.1.0"