"""
Cryptographic hashing utilities.

The escrow contract binds an off-chain agreement to itself through its
``termsHash``: the keccak-256 digest of the exact PDF bytes. This module
computes that digest for comparison against on-chain state.

IMPORTANT:
- Input is the raw PDF file, byte for byte.
- No PDF parsing, normalization, or re-serialization occurs here.
"""

from typing import Union

from eth_utils import keccak


def compute_terms_hash(pdf_bytes: Union[bytes, bytearray]) -> str:
    """
    Compute the terms hash of a PDF artifact.

    Returns:
        A ``0x``-prefixed, lowercase 32-byte hex string, matching the
        ``bytes32 termsHash`` stored by the escrow contract.
    """
    if not isinstance(pdf_bytes, (bytes, bytearray)):
        raise TypeError(
            "compute_terms_hash expects PDF bytes, "
            f"got {type(pdf_bytes).__name__}"
        )

    return "0x" + keccak(bytes(pdf_bytes)).hex()
