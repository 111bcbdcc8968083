"""ABI for the generic on-chain key/value contract.

The contract exposes ``getData(string) -> bytes``, ``setData(string, bytes)``
and ``isAvailable() -> bool``. A compiled artifact can be supplied through
``contract_abi_path``; otherwise the bundled fragment below is used.
"""
from __future__ import annotations

import json
from pathlib import Path

KEY_VALUE_ABI: list[dict] = [
    {
        "type": "function",
        "name": "getData",
        "stateMutability": "view",
        "inputs": [{"name": "key", "type": "string"}],
        "outputs": [{"name": "", "type": "bytes"}],
    },
    {
        "type": "function",
        "name": "setData",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "key", "type": "string"},
            {"name": "value", "type": "bytes"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "isAvailable",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


def load_abi(path: str = "") -> list:
    """Load ABI from a Foundry/Hardhat artifact or a bare ABI list."""
    if not path:
        return KEY_VALUE_ABI
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        return data["abi"]
    return data
