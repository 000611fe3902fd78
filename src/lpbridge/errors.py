"""Bridge error taxonomy.

Every public ledger operation is all-or-nothing: an exception from this
module means no state was changed by the call that raised it.
"""


class BridgeError(Exception):
    """Base class for all bridge errors."""

    pass


# Validation errors


class ValidationError(BridgeError):
    """Request rejected before any state was touched."""

    pass


class InvalidAmount(ValidationError):
    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Amount must be a positive integer, got {amount!r}")


class InvalidShares(ValidationError):
    def __init__(self, shares, available: int = 0):
        self.shares = shares
        self.available = available
        super().__init__(f"Invalid share amount {shares!r} (position holds {available})")


class ZeroShares(ValidationError):
    def __init__(self, amount: int):
        self.amount = amount
        super().__init__(f"Deposit of {amount} would mint zero shares")


class InvalidRecipient(ValidationError):
    def __init__(self, recipient):
        self.recipient = recipient
        super().__init__(f"Invalid recipient {recipient!r}")


class UnregisteredDestination(ValidationError):
    def __init__(self, domain_id: int):
        self.domain_id = domain_id
        super().__init__(f"No peer registered for domain {domain_id}")


class InvalidOptions(ValidationError):
    """Malformed messaging options."""

    pass


class InvalidPayload(ValidationError):
    """Transfer payload that cannot be decoded."""

    pass


class UnsupportedOperation(ValidationError):
    """Operation not offered by this domain's liquidity source."""

    pass


# Resource errors


class ResourceError(BridgeError):
    """Not enough of some balance to complete the request."""

    pass


class InsufficientLiquidity(ResourceError):
    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(f"Insufficient liquidity: have {available}, need {required}")


class InsufficientPoolBalance(ResourceError):
    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(f"Insufficient pool balance: custody holds {available}, need {required}")


class InsufficientReserve(ResourceError):
    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(f"Insufficient native reserve: have {available}, need {required}")


class InsufficientMessagingBudget(ResourceError):
    def __init__(self, budget: int, required: int):
        self.budget = budget
        self.required = required
        super().__init__(f"Messaging budget {budget} below required fee {required}")


# Trust errors


class TrustError(BridgeError):
    """Inbound instruction rejected on provenance."""

    pass


class UntrustedOrigin(TrustError):
    def __init__(self, src_domain: int, sender: str, reason: str = "not a registered peer"):
        self.src_domain = src_domain
        self.sender = sender
        super().__init__(f"Untrusted origin {sender!r} from domain {src_domain}: {reason}")


class DuplicateInstruction(TrustError):
    def __init__(self, guid: str):
        self.guid = guid
        super().__init__(f"Instruction {guid} already processed")


# Authorization errors


class AuthorizationError(BridgeError):
    pass


class NotOwner(AuthorizationError):
    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"{caller!r} is not the pool owner")


class ReentrantCall(BridgeError):
    """Nested call into an orchestrator that is mid-operation."""

    def __init__(self, operation: str, active: str):
        self.operation = operation
        self.active = active
        super().__init__(f"Reentrant call to {operation} while {active} is in progress")


# Collaborator failures


class CollaboratorError(BridgeError):
    pass


class CustodyError(CollaboratorError):
    pass


class TransportError(CollaboratorError):
    pass


class SwapError(CollaboratorError):
    pass


class PriceUnavailable(CollaboratorError):
    pass
