"""Solana RPC client with fallback support."""
import base64
import logging
import ssl
from typing import Any

import aiohttp
import certifi
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from ...config import ClusterConfig
from ...errors import LedgerRpcError

logger = logging.getLogger(__name__)


class SolanaClient:
    """Solana JSON-RPC client with automatic endpoint fallback."""

    def __init__(self, config: ClusterConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.commitment = config.commitment
        self.current_rpc_index = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise LedgerRpcError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result")
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise LedgerRpcError(f"All RPC endpoints failed. Last error: {last_error}")

    async def get_account_info(self, address: Pubkey) -> bytes | None:
        """Raw account data, or ``None`` when the account does not exist."""
        result = await self.rpc_call(
            "getAccountInfo",
            [str(address), {"encoding": "base64", "commitment": self.commitment}],
        )
        value = (result or {}).get("value")
        if value is None:
            logger.debug("Account %s not found", address)
            return None

        data_b64 = value.get("data", ["", "base64"])[0]
        return base64.b64decode(data_b64)

    async def get_balance(self, address: Pubkey) -> int:
        """Lamport balance of ``address``."""
        result = await self.rpc_call(
            "getBalance", [str(address), {"commitment": self.commitment}]
        )
        return int((result or {}).get("value", 0))

    async def get_latest_blockhash(self) -> Hash:
        result = await self.rpc_call(
            "getLatestBlockhash", [{"commitment": self.commitment}]
        )
        try:
            return Hash.from_string(result["value"]["blockhash"])
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerRpcError(f"Malformed getLatestBlockhash response: {result}") from e

    async def send_transaction(self, raw_transaction: bytes) -> str:
        """Submit a signed, serialized transaction; returns its signature."""
        encoded = base64.b64encode(raw_transaction).decode("ascii")
        signature = await self.rpc_call(
            "sendTransaction",
            [
                encoded,
                {"encoding": "base64", "preflightCommitment": self.commitment},
            ],
        )
        if not isinstance(signature, str):
            raise LedgerRpcError(f"Unexpected sendTransaction result: {signature}")
        return signature

    async def send_instruction(self, instruction: Instruction, payer: Keypair) -> str:
        """Wrap ``instruction`` in a transaction paid and signed by ``payer``."""
        blockhash = await self.get_latest_blockhash()
        message = Message.new_with_blockhash([instruction], payer.pubkey(), blockhash)
        transaction = Transaction.new_unsigned(message)
        transaction.sign([payer], blockhash)

        signature = await self.send_transaction(bytes(transaction))
        logger.info("Submitted transaction %s", signature)
        return signature
