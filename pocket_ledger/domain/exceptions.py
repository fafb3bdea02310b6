"""Domain-specific exceptions"""

from decimal import Decimal


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"


class CreditLimitExceeded(DomainException):
    """Charge would push the card balance past its credit limit"""

    code = "credit_limit_exceeded"

    def __init__(self, card_id: str, requested: Decimal, headroom: Decimal):
        self.card_id = card_id
        self.requested = requested
        self.headroom = headroom
        super().__init__(
            f"Card {card_id}: charge of {requested} exceeds available credit {headroom}"
        )


class InsufficientFunds(DomainException):
    """Payment exceeds the available-cash ceiling supplied by the caller"""

    code = "insufficient_funds"

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(f"Amount {requested} exceeds available cash {available}")


class OverAllocation(DomainException):
    """More is being paid or withdrawn than remains outstanding"""

    code = "over_allocation"

    def __init__(self, target_id: str, requested: Decimal, outstanding: Decimal):
        self.target_id = target_id
        self.requested = requested
        self.outstanding = outstanding
        super().__init__(
            f"{target_id}: amount {requested} exceeds outstanding {outstanding}"
        )


class InvalidReference(DomainException):
    """Operation targets an id that is not present in the snapshot"""

    code = "invalid_reference"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"Unknown {entity} id {entity_id!r}")


class ReferenceInUse(DomainException):
    """Deletion blocked because other records still depend on the target"""

    code = "reference_in_use"

    def __init__(self, entity: str, entity_id: str, reason: str):
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot delete {entity} {entity_id!r}: {reason}")


class InvalidLedgerData(DomainException):
    """Input data is malformed or out of range"""

    code = "invalid_ledger_data"
