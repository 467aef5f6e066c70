"""Request-scoped errors raised by the pledge and payment engine.

Validation and identity errors carry a message meant for the supporter.
Settlement and consistency errors are logged with their detail and shown
to the caller only as a generic message (``public = False``).
"""


class LedgerError(Exception):
    status_code = 400
    public = True
    generic_message = "Die Anfrage konnte nicht verarbeitet werden."

    @property
    def client_message(self) -> str:
        if self.public:
            return str(self)
        return self.generic_message


# ---------- validation ----------
class PledgeValidationError(LedgerError):
    pass


class InvalidSelection(PledgeValidationError):
    pass


class CrossPackageSelection(PledgeValidationError):
    pass


class AmountOutOfRange(PledgeValidationError):
    pass


class TotalTooLow(PledgeValidationError):
    pass


class ReasonRequired(PledgeValidationError):
    pass


class IdentityRequired(PledgeValidationError):
    pass


class UnsupportedPaymentMethod(PledgeValidationError):
    pass


class PaymentPayloadInvalid(PledgeValidationError):
    pass


class PledgeAlreadyPaid(PledgeValidationError):
    """Only DRAFT pledges can be paid; the status never goes back."""


# ---------- identity ----------
class IdentityError(LedgerError):
    status_code = 409


class IdentityConflict(IdentityError):
    pass


class EmailTaken(IdentityError):
    pass


class AlreadyOwner(IdentityError):
    pass


class CannotClaimVerified(IdentityError):
    pass


class EmailMismatch(IdentityError):
    status_code = 403


class Unauthorized(IdentityError):
    status_code = 401


# ---------- settlement ----------
class SettlementError(LedgerError):
    status_code = 402
    public = False
    generic_message = "Die Zahlung konnte nicht verarbeitet werden."


class ReplayDetected(SettlementError):
    pass


class ProviderRejected(SettlementError):
    pass


class AmountMismatch(SettlementError):
    """Paid amount differs from the pledge total.

    Never raised by the engine: the payment is already recorded, so this is
    returned alongside the settled pledge and reported to operators.
    """

    def __init__(self, pledge_id: str, expected: int, paid: int):
        super().__init__(
            f"paid amount ({paid}) != pledge.total ({expected}) for pledge {pledge_id}"
        )
        self.pledge_id = pledge_id
        self.expected = expected
        self.paid = paid


# ---------- consistency ----------
class ConsistencyError(LedgerError):
    status_code = 500
    public = False
    generic_message = "Interner Fehler."


class NotFound(ConsistencyError):
    status_code = 404


class Inconsistent(ConsistencyError):
    pass
