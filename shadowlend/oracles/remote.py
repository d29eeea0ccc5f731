"""HTTP client for an external confidential-compute proof service."""
from __future__ import annotations

import base64
import binascii
import logging
import ssl

import aiohttp
import certifi

from ..config import ProofOracleConfig
from ..errors import ProofOracleError
from ..models import ProofRequest

logger = logging.getLogger(__name__)


class RemoteProofOracle:
    """Request solvency proofs from a remote oracle over HTTPS.

    Request body::

        {"kind": "borrow", "ciphertextA": "<b64>", "ciphertextB": "<b64>",
         "amount": "5000000000", "riskParamBps": 7500}

    Response body: ``{"proof": "<b64>"}``.
    """

    def __init__(self, config: ProofOracleConfig) -> None:
        self.url = config.url
        self.timeout = config.timeout

    @staticmethod
    def _payload(request: ProofRequest) -> dict[str, object]:
        return {
            "kind": request.kind,
            "ciphertextA": base64.b64encode(request.ciphertext_a).decode("ascii"),
            "ciphertextB": base64.b64encode(request.ciphertext_b).decode("ascii"),
            # u64 may exceed JSON-safe integers on the other side
            "amount": str(request.amount),
            "riskParamBps": request.risk_param_bps,
        }

    async def generate_proof(self, request: ProofRequest) -> bytes:
        """Fetch a proof for ``request``.

        Raises:
            ProofOracleError: transport failure, non-200 status, or a response
                without a decodable ``proof`` field.
        """
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.url,
                    json=self._payload(request),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise ProofOracleError(
                            f"Proof oracle returned HTTP {response.status}"
                        )
                    data = await response.json()
        except ProofOracleError:
            raise
        except Exception as e:
            raise ProofOracleError(f"Proof oracle request failed: {e}") from e

        encoded = data.get("proof") if isinstance(data, dict) else None
        if not encoded:
            raise ProofOracleError("Proof oracle response has no proof")
        try:
            proof = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise ProofOracleError(f"Proof is not valid base64: {e}") from e

        logger.info("Received %s proof from oracle (%d bytes)", request.kind, len(proof))
        return proof
