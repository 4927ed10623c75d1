"""
Role-aware guidance for a verified escrow document.

Pure functions. Given the connected wallet, the parties named in a
verified envelope, and the escrow's on-chain state, produce the
instruction shown next to a verification result.
"""

from __future__ import annotations

from typing import Optional

from verifier.app.coordinator.onchain_verification import TERMINAL_STATES, EscrowState
from verifier.app.schemas.verification import (
    EscrowRole,
    InstructionVariant,
    WalletInstructions,
)


def determine_user_role(
    connected_address: Optional[str],
    buyer: str,
    seller: str,
    agent: Optional[str],
) -> EscrowRole:
    """Case-insensitive role lookup. Buyer wins over seller over agent."""
    if not connected_address:
        return EscrowRole.NONE

    address = connected_address.lower()
    if address == buyer.lower():
        return EscrowRole.BUYER
    if address == seller.lower():
        return EscrowRole.SELLER
    if agent and address == agent.lower():
        return EscrowRole.AGENT
    return EscrowRole.NONE


# ---------------------------------------------------------------------------
# Instruction tables
# ---------------------------------------------------------------------------

_COMPLETED = WalletInstructions(
    title="Contract Completed",
    description="This contract has been completed and finalized.",
    variant=InstructionVariant.COMPLETED,
)

_AGENT_INVESTIGATING = WalletInstructions(
    title="Agent Investigating",
    description=(
        "The agent has been invited to resolve this dispute. "
        "Await their decision."
    ),
    variant=InstructionVariant.INFO,
)

_IN_PROGRESS = WalletInstructions(
    title="Contract Active",
    description="This contract is in progress.",
    variant=InstructionVariant.INFO,
)

_BUYER = {
    EscrowState.PENDING: WalletInstructions(
        title="Waiting for Seller",
        description=(
            "The seller needs to review and accept this contract. "
            "Contact them to confirm participation."
        ),
        variant=InstructionVariant.INFO,
    ),
    EscrowState.ACTIVE: WalletInstructions(
        title="Contract Active",
        description=(
            "The contract is active. Wait for the seller to deliver, "
            "then release funds when satisfied."
        ),
        variant=InstructionVariant.INFO,
    ),
    EscrowState.FULFILLED: WalletInstructions(
        title="Delivery Confirmed",
        description=(
            "The seller has confirmed fulfillment. Review the delivery "
            "and release funds if satisfied."
        ),
        variant=InstructionVariant.ACTION,
    ),
    EscrowState.DISPUTED: WalletInstructions(
        title="Dispute Open",
        description=(
            "You have opened a dispute. You can invite the agent to "
            "resolve it or propose a settlement."
        ),
        variant=InstructionVariant.WARNING,
    ),
    EscrowState.AGENT_INVITED: _AGENT_INVESTIGATING,
}

_SELLER = {
    EscrowState.PENDING: WalletInstructions(
        title="Action Required",
        description=(
            "This contract awaits your confirmation. Review the terms "
            "carefully and accept to activate the escrow."
        ),
        variant=InstructionVariant.ACTION,
    ),
    EscrowState.ACTIVE: WalletInstructions(
        title="Safe to Deliver",
        description=(
            "The contract is active and funds are locked. It's safe to "
            "deliver the product or service. The funds cannot be withdrawn "
            "except through the contract rules."
        ),
        variant=InstructionVariant.ACTION,
    ),
    EscrowState.FULFILLED: WalletInstructions(
        title="Awaiting Release",
        description=(
            "You've confirmed fulfillment. Waiting for the buyer to release "
            "funds. If they don't release within the protection period, "
            "you can claim the funds."
        ),
        variant=InstructionVariant.INFO,
    ),
    EscrowState.DISPUTED: WalletInstructions(
        title="Dispute Open",
        description=(
            "A dispute has been opened. You can invite the agent to resolve "
            "it, propose a settlement, or issue a refund."
        ),
        variant=InstructionVariant.WARNING,
    ),
    EscrowState.AGENT_INVITED: _AGENT_INVESTIGATING,
}

_AGENT_ASSIGNED = WalletInstructions(
    title="Assigned Agent",
    description=(
        "You are the assigned agent for this contract. Parties have not "
        "invited you to resolve a dispute yet."
    ),
    variant=InstructionVariant.INFO,
)

_AGENT = {
    EscrowState.AGENT_INVITED: WalletInstructions(
        title="Action Required",
        description=(
            "You are the agent. This contract awaits your investigation and "
            "resolution. Review the evidence and make a fair decision."
        ),
        variant=InstructionVariant.ACTION,
    ),
    EscrowState.PENDING: _AGENT_ASSIGNED,
    EscrowState.ACTIVE: _AGENT_ASSIGNED,
    EscrowState.FULFILLED: _AGENT_ASSIGNED,
    EscrowState.DISPUTED: _AGENT_ASSIGNED,
}

_AGENT_DEFAULT = WalletInstructions(
    title="Assigned Agent",
    description="You are the assigned agent for this contract.",
    variant=InstructionVariant.INFO,
)


def get_verification_instructions(
    state: Optional[int],
    role: EscrowRole,
    is_connected: bool,
) -> WalletInstructions:
    """
    Instruction for a role in a given escrow state.

    ``state`` is ``None`` when the contract is not deployed.
    """
    if state is None:
        return WalletInstructions(
            title="Contract Not Found",
            description=(
                "This contract has not been deployed on-chain. "
                "No actions are available."
            ),
            variant=InstructionVariant.WARNING,
        )

    if role is EscrowRole.NONE:
        if not is_connected:
            return WalletInstructions(
                title="Connect Wallet",
                description=(
                    "Connect your wallet to receive personalized instructions "
                    "based on your role in this contract."
                ),
                variant=InstructionVariant.INFO,
            )
        return WalletInstructions(
            title="Not a Participant",
            description=(
                "Your connected wallet is not a participant in this contract. "
                "You are viewing as a third party."
            ),
            variant=InstructionVariant.INFO,
        )

    if state in TERMINAL_STATES:
        return _COMPLETED

    if role is EscrowRole.BUYER:
        return _BUYER.get(state, _IN_PROGRESS)
    if role is EscrowRole.SELLER:
        return _SELLER.get(state, _IN_PROGRESS)
    return _AGENT.get(state, _AGENT_DEFAULT)
