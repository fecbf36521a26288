"""
ERC-721 contract reads over plain JSON-RPC ``eth_call``.
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, Optional

import httpx
from eth_utils import keccak

from ..errors import ContractCallError
from .base import CollectionReader


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


def _encode_uint(value: int) -> str:
    if value < 0:
        raise ValueError("Value must be non-negative")
    return hex(value)[2:].rjust(64, "0")


def _encode_address(address: str) -> str:
    addr = _strip_0x(address).lower()
    if len(addr) != 40:
        raise ValueError(f"Invalid address length: {address}")
    return addr.rjust(64, "0")


def _selector_from_signature(signature: str) -> str:
    selector = keccak(text=signature)[:4].hex()
    return f"0x{selector}"


SELECTORS: Dict[str, str] = {
    "name": _selector_from_signature("name()"),
    "symbol": _selector_from_signature("symbol()"),
    "balanceOf": _selector_from_signature("balanceOf(address)"),
    "tokenOfOwnerByIndex": _selector_from_signature("tokenOfOwnerByIndex(address,uint256)"),
    "tokenURI": _selector_from_signature("tokenURI(uint256)"),
}


def parse_token_id(token_id: str) -> int:
    raw = token_id.strip().lower()
    if raw.startswith("0x"):
        return int(raw, 16)
    return int(raw, 10)


def decode_uint(method: str, result: str) -> int:
    hex_data = _strip_0x(result or "")
    if not hex_data:
        raise ContractCallError(f"{method} returned no data", method=method)
    return int(hex_data[:64], 16)


def decode_string(method: str, result: str) -> str:
    """Decode an ABI ``string`` return value.

    Some early contracts return ``bytes32`` for name/symbol, so a bare
    32-byte word is read as a NUL-padded string.
    """
    hex_data = _strip_0x(result or "")
    if not hex_data:
        raise ContractCallError(f"{method} returned no data", method=method)
    try:
        data = bytes.fromhex(hex_data)
    except ValueError as exc:
        raise ContractCallError(f"{method} returned malformed data", method=method) from exc

    if len(data) == 32:
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")

    if len(data) < 64:
        raise ContractCallError(f"{method} returned truncated data", method=method)

    offset = int.from_bytes(data[:32], "big")
    if offset + 32 > len(data):
        raise ContractCallError(f"{method} string offset out of range", method=method)
    length = int.from_bytes(data[offset:offset + 32], "big")
    start = offset + 32
    if start + length > len(data):
        raise ContractCallError(f"{method} string length out of range", method=method)
    return data[start:start + length].decode("utf-8", errors="replace")


class Erc721Reader(CollectionReader):
    """JSON-RPC reader for ERC-721 enumerable collections"""

    name = "rpc"
    timeout_s = 15

    def __init__(
        self,
        rpc_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
    ):
        self.rpc_url = rpc_url
        self._client = client
        self._ids = itertools.count(1)
        if timeout_s is not None:
            self.timeout_s = timeout_s

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "RPC endpoint not configured"}

        try:
            response = await self._post({"jsonrpc": "2.0", "method": "eth_chainId", "params": [], "id": next(self._ids)})
            response.raise_for_status()
            data = response.json()
            return {
                "status": "healthy",
                "chain_id": int(data.get("result", "0x0"), 16),
                "latency_ms": int(response.elapsed.total_seconds() * 1000),
            }
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._client is not None:
            return await self._client.post(self.rpc_url, json=payload, headers=headers, timeout=self.timeout_s)
        async with httpx.AsyncClient() as client:
            return await client.post(self.rpc_url, json=payload, headers=headers, timeout=self.timeout_s)

    async def _call(self, contract: str, method: str, args: str = "") -> str:
        payload = {
            "jsonrpc": "2.0",
            "method": "eth_call",
            "params": [{"to": contract, "data": SELECTORS[method] + args}, "latest"],
            "id": next(self._ids),
        }
        response = await self._post(payload)
        response.raise_for_status()
        data = response.json()

        if "error" in data:
            error = data["error"] or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ContractCallError(f"{method} failed: {message}", method=method)

        result = data.get("result")
        if not isinstance(result, str):
            raise ContractCallError(f"{method} returned no result", method=method)
        return result

    async def contract_name(self, contract: str) -> str:
        return decode_string("name", await self._call(contract, "name"))

    async def contract_symbol(self, contract: str) -> str:
        return decode_string("symbol", await self._call(contract, "symbol"))

    async def balance_of(self, contract: str, owner: str) -> int:
        result = await self._call(contract, "balanceOf", _encode_address(owner))
        return decode_uint("balanceOf", result)

    async def token_of_owner_by_index(self, contract: str, owner: str, index: int) -> int:
        args = _encode_address(owner) + _encode_uint(index)
        result = await self._call(contract, "tokenOfOwnerByIndex", args)
        return decode_uint("tokenOfOwnerByIndex", result)

    async def token_uri(self, contract: str, token_id: str) -> str:
        result = await self._call(contract, "tokenURI", _encode_uint(parse_token_id(token_id)))
        return decode_string("tokenURI", result)
