"""
Errors - Failure taxonomy for the client.

Three families:
- PreconditionNotMet: detected client-side, nothing was submitted
- ProtocolRejection: the program (or runtime) refused the transaction
- TransportFailure: the RPC node could not be reached or answered garbage

Nothing in this package retries. Callers decide what to do.
"""
from typing import List, Optional


class SuperTokenError(Exception):
    """Base class for every error raised by super_token."""


# =============================================================================
# CLIENT-DETECTED
# =============================================================================

class PreconditionNotMet(SuperTokenError):
    """Operation aborted before any instruction was built or submitted."""


class TokenAccountNotFound(PreconditionNotMet):
    def __init__(self, mint: str, owner: str, role: str = "token"):
        self.mint = mint
        self.owner = owner
        self.role = role
        super().__init__(
            f"could not find a {role} account for mint {mint} owned by {owner}"
        )


class AccountNotFound(PreconditionNotMet):
    def __init__(self, address: str, what: str = "account"):
        self.address = address
        self.what = what
        super().__init__(f"{what} {address} does not exist")


class InvalidAccountData(PreconditionNotMet):
    def __init__(self, address: str, what: str, detail: str):
        self.address = address
        self.what = what
        super().__init__(f"{address} is not a valid {what}: {detail}")


class MintPoolMismatch(PreconditionNotMet):
    def __init__(self, mint: str, pool: str):
        self.mint = mint
        self.pool = pool
        super().__init__(
            f"the provided mint {mint} and liquidity pool {pool} don't match"
        )


class InsufficientBootstrapBalance(PreconditionNotMet):
    def __init__(self, mint: str, have: int, need: int):
        self.mint = mint
        self.have = have
        self.need = need
        super().__init__(
            f"pool bootstrap needs {need} base units of mint {mint}, wallet holds {have}"
        )


class VaultAlreadyExists(PreconditionNotMet):
    def __init__(self, vault: str):
        self.vault = vault
        super().__init__(f"vault {vault} is already initialized")


class InvalidAmount(PreconditionNotMet):
    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"amount must be a positive integer in base units, got {amount!r}")


class InvalidTimeWindow(PreconditionNotMet):
    pass


# =============================================================================
# PROGRAM-DETECTED
# =============================================================================

class ProtocolRejection(SuperTokenError):
    """
    The cluster refused the transaction.

    `reason` is the node's message, untouched. `logs` are the program logs
    from preflight simulation when the node returned them. `program_error`
    is the decoded vault error name when the custom error code is known.
    """

    def __init__(
        self,
        reason: str,
        logs: Optional[List[str]] = None,
        program_error: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        self.reason = reason
        self.logs = list(logs or [])
        self.program_error = program_error
        self.stage = stage
        super().__init__(reason)

    def __str__(self) -> str:
        msg = self.reason
        if self.program_error and self.program_error not in msg:
            msg = f"{msg} ({self.program_error})"
        if self.stage:
            msg = f"[{self.stage}] {msg}"
        return msg


# =============================================================================
# NETWORK
# =============================================================================

class TransportFailure(SuperTokenError):
    """RPC/network failure. The original exception is chained as __cause__."""
