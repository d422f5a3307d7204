"""Address helpers and default account-to-shard mapping."""

from __future__ import annotations

import re

Address = str

_HEX = re.compile(r"[0-9a-fA-F]+")


def addr2shard(addr: Address, shard_num: int) -> int:
    """Map an account address to a shard by its last eight hex digits."""
    tail = addr[-8:] if len(addr) > 8 else addr
    if not _HEX.fullmatch(tail):
        raise ValueError(f"address tail {tail!r} is not hexadecimal")
    return int(tail, 16) % shard_num


def mod_bytes(data: bytes, mod: int) -> int:
    """Interpret bytes as a big-endian unsigned integer and reduce it modulo mod."""
    return int.from_bytes(data, "big") % mod