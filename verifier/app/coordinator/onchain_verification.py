"""
On-chain terms hash verification.

The escrow contract stores ``termsHash``, the keccak-256 of the agreement
PDF bytes. Comparing it with the hash of the PDF under verification shows
whether *this exact file* is the one the deployed escrow is bound to.

Only two view functions are read (``termsHash`` and ``state``). The
contract itself is an external system.

Failure policy:
    Reading is network IO and can fail for many reasons. Every failure is
    mapped into an OnChainStatus; nothing propagates to the caller.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Dict, Mapping, Protocol

from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from verifier.app.schemas.verification import OnChainStatus, OnChainStatusKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Contract model
# ---------------------------------------------------------------------------


class EscrowState(IntEnum):
    """Escrow states in contract enum order."""

    PENDING = 0
    ACTIVE = 1
    FULFILLED = 2
    RELEASED = 3
    DISPUTED = 4
    AGENT_INVITED = 5
    AGENT_RESOLVED = 6
    REFUNDED = 7
    SPLIT = 8


TERMINAL_STATES = frozenset(
    {
        EscrowState.RELEASED,
        EscrowState.AGENT_RESOLVED,
        EscrowState.REFUNDED,
        EscrowState.SPLIT,
    }
)


CHAIN_NAMES: Dict[int, str] = {
    1: "Ethereum Mainnet",
    11155111: "Sepolia Testnet",
}


ESCROW_VIEW_ABI = [
    {
        "inputs": [],
        "name": "state",
        "outputs": [
            {
                "internalType": "enum EscrowTypes.EscrowState",
                "name": "",
                "type": "uint8",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "termsHash",
        "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def is_supported_chain(chain_id: int) -> bool:
    return chain_id in CHAIN_NAMES


def get_chain_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, f"Unknown Chain ({chain_id})")


def get_block_explorer_url(chain_id: int, address: str) -> str:
    if chain_id == 1:
        return f"https://etherscan.io/address/{address}"
    return f"https://sepolia.etherscan.io/address/{address}"


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


class EscrowContractReader(Protocol):
    """
    Read-only access to a deployed escrow contract.

    Implementations raise on failure; interpretation of failures belongs
    to :func:`verify_on_chain`.
    """

    def read_terms_hash(self, escrow_address: str, chain_id: int) -> str:
        ...

    def read_state(self, escrow_address: str, chain_id: int) -> int:
        ...


class Web3EscrowContractReader:
    """EscrowContractReader backed by web3.py JSON-RPC providers."""

    def __init__(
        self,
        rpc_urls: Mapping[int, str],
        timeout_seconds: float = 10.0,
    ) -> None:
        self._clients: Dict[int, Web3] = {
            chain_id: Web3(
                Web3.HTTPProvider(url, request_kwargs={"timeout": timeout_seconds})
            )
            for chain_id, url in rpc_urls.items()
        }

    def _contract(self, escrow_address: str, chain_id: int):
        client = self._clients.get(chain_id)
        if client is None:
            raise LookupError(f"No RPC endpoint configured for chain {chain_id}")
        return client.eth.contract(
            address=Web3.to_checksum_address(escrow_address),
            abi=ESCROW_VIEW_ABI,
        )

    def read_terms_hash(self, escrow_address: str, chain_id: int) -> str:
        raw = self._contract(escrow_address, chain_id).functions.termsHash().call()
        return "0x" + bytes(raw).hex()

    def read_state(self, escrow_address: str, chain_id: int) -> int:
        return int(self._contract(escrow_address, chain_id).functions.state().call())


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

_NOT_DEPLOYED_MARKERS = (
    "returned no data",
    "is not a contract",
    "execution reverted",
    "could not decode contract function call",
)


def verify_on_chain(
    reader: EscrowContractReader,
    escrow_address: str,
    chain_id: int,
    pdf_hash: str,
) -> OnChainStatus:
    """
    Compare a PDF terms hash against the escrow contract.

    A failed ``termsHash`` read means the contract is not deployed (or is
    not an escrow). A failed ``state`` read after a successful
    ``termsHash`` read is an error.
    """
    if not is_supported_chain(chain_id):
        return OnChainStatus(
            status=OnChainStatusKind.ERROR,
            message=f"Unsupported chain: {chain_id}",
        )

    try:
        on_chain_hash = reader.read_terms_hash(escrow_address, chain_id)
    except (BadFunctionCallOutput, ContractLogicError) as exc:
        logger.info("termsHash read reverted for %s: %s", escrow_address, exc)
        return OnChainStatus(status=OnChainStatusKind.NOT_DEPLOYED)
    except Exception as exc:
        message = str(exc)
        if any(marker in message.lower() for marker in _NOT_DEPLOYED_MARKERS):
            logger.info("Escrow %s not deployed on chain %d", escrow_address, chain_id)
            return OnChainStatus(status=OnChainStatusKind.NOT_DEPLOYED)
        logger.warning("On-chain verification failed for %s: %s", escrow_address, exc)
        return OnChainStatus(
            status=OnChainStatusKind.ERROR,
            message=f"On-chain verification failed: {message}",
        )

    try:
        state = reader.read_state(escrow_address, chain_id)
    except Exception as exc:
        logger.warning("state read failed for %s: %s", escrow_address, exc)
        return OnChainStatus(
            status=OnChainStatusKind.ERROR,
            message="Could not read contract state",
        )

    if pdf_hash.lower() == on_chain_hash.lower():
        return OnChainStatus(status=OnChainStatusKind.HASH_MATCH, state=state)

    return OnChainStatus(
        status=OnChainStatusKind.HASH_MISMATCH,
        state=state,
        on_chain_hash=on_chain_hash,
        pdf_hash=pdf_hash,
    )
