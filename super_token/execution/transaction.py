"""
Transaction Builder
===================

Accumulates instructions and signers for one atomic transaction.
Orchestrators and the provisioner append to the same builder, so account
creation lands in front of the primary instruction and everything commits
or fails together.
"""

import logging
from typing import Dict, List, Optional, Tuple

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """
    Ordered instructions plus the keypairs that must sign them.

    The fee payer is always the first signer. Signers are deduplicated by
    public key.

    Example:
        builder = TransactionBuilder(payer)
        builder.add(ix, signers=[new_account])
        sig = await builder.submit(transport)
    """

    def __init__(self, payer: Keypair, label: str = "transaction"):
        self.payer = payer
        self.label = label
        self._instructions: List[Instruction] = []
        self._signers: Dict[Pubkey, Keypair] = {payer.pubkey(): payer}
        # (owner, mint) -> account scheduled for creation in this builder
        self.pending_accounts: Dict[Tuple[Pubkey, Pubkey], Pubkey] = {}

    @property
    def instructions(self) -> List[Instruction]:
        return list(self._instructions)

    @property
    def signers(self) -> List[Keypair]:
        return list(self._signers.values())

    def add(self, instruction: Instruction, signers: Optional[List[Keypair]] = None) -> 'TransactionBuilder':
        self._instructions.append(instruction)
        for signer in signers or []:
            self.add_signer(signer)
        return self

    def extend(self, instructions: List[Instruction], signers: Optional[List[Keypair]] = None) -> 'TransactionBuilder':
        for ix in instructions:
            self._instructions.append(ix)
        for signer in signers or []:
            self.add_signer(signer)
        return self

    def add_signer(self, signer: Keypair) -> None:
        self._signers.setdefault(signer.pubkey(), signer)

    def is_empty(self) -> bool:
        return not self._instructions

    def __len__(self) -> int:
        return len(self._instructions)

    async def submit(self, transport) -> str:
        """Send everything in one transaction. Returns the signature."""
        if self.is_empty():
            raise ValueError(f"{self.label}: nothing to submit")
        logger.info(
            f"Submitting {self.label}: {len(self._instructions)} instructions, "
            f"{len(self._signers)} signers"
        )
        signature = await transport.submit(self.instructions, self.signers)
        logger.info(f"{self.label} confirmed: {signature}")
        return signature
