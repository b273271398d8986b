"""
Vault error taxonomy

Every rejected operation raises one of these. They subclass ValueError so
callers that only care about "the vault said no" can keep catching that.
"""

from typing import Optional


class VaultError(ValueError):
    """Base class for rejected vault operations"""

    code = "vault_error"
    default_message = "Vault operation rejected"

    def __init__(self, message: Optional[str] = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serialize error for API responses and logs"""
        data = {'code': self.code, 'error': self.message}
        data.update(self.context)
        return data


class Unauthorized(VaultError):
    code = "unauthorized"
    default_message = "Caller is missing the required role"


class AlreadyExists(VaultError):
    code = "already_exists"
    default_message = "Transaction exists"


class InvalidAmount(VaultError):
    code = "invalid_amount"
    default_message = "Request amount is not in a tier"


class AmountTooLarge(InvalidAmount):
    code = "amount_too_large"
    default_message = "Request amount is too large"


class InvalidBeneficiary(VaultError):
    code = "invalid_beneficiary"
    default_message = "Beneficiary is not a valid account"


class InvalidRequestId(VaultError):
    code = "invalid_request_id"
    default_message = "Request id must be a non-negative integer"


class CooldownActive(VaultError):
    code = "cooldown_active"
    default_message = "Tiered amount on cooldown"

    def __init__(self, message: Optional[str] = None, retry_after: int = 0, **context):
        self.retry_after = retry_after
        super().__init__(message, retry_after=retry_after, **context)


class NotFound(VaultError):
    code = "not_found"
    default_message = "Transaction does not exist"


class AlreadyApproved(VaultError):
    code = "already_approved"
    default_message = "Approver has already approved"


class AlreadyWithdrawn(VaultError):
    code = "already_withdrawn"
    default_message = "Transaction already withdrawn"


class QuorumNotMet(VaultError):
    code = "quorum_not_met"
    default_message = "Transaction is not approved"


class InsufficientFunds(VaultError):
    code = "insufficient_funds"
    default_message = "Insufficient vault balance"


class TransferFailed(VaultError):
    code = "transfer_failed"
    default_message = "Transfer to beneficiary failed"


class ReentrantCall(VaultError):
    code = "reentrant_call"
    default_message = "Reentrant call"


class InvalidSignature(VaultError):
    code = "invalid_signature"
    default_message = "Signature does not match caller"
