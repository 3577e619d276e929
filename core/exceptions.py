"""
Domain errors shared by the allocator, the payment guard and the store.
Rendered into API responses by config.exceptions.custom_exception_handler.
"""


class DomainError(Exception):
    """Base class: every domain error maps to an HTTP status and an error code."""
    status_code = 400
    code = 'error'
    default_detail = 'Request could not be completed.'

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def payload(self):
        return {'detail': self.detail, 'code': self.code}


class ConstraintViolation(DomainError):
    """Store-level rejection of a write due to a uniqueness rule."""
    status_code = 409
    code = 'constraint_violation'
    default_detail = 'Record conflicts with an existing record.'

    def __init__(self, detail=None, model=None):
        self.model = model
        super().__init__(detail)


class NotFound(DomainError):
    status_code = 404
    code = 'not_found'
    default_detail = 'Record not found.'


class AllocationExhausted(DomainError):
    """Identifier allocation kept losing races; the caller may retry after backoff."""
    status_code = 503
    code = 'allocation_exhausted'
    default_detail = 'Could not allocate a unique student ID. Please try again.'

    def __init__(self, attempts, detail=None):
        self.attempts = attempts
        super().__init__(detail)

    def payload(self):
        data = super().payload()
        data['attempts'] = self.attempts
        data['retryable'] = True
        return data


class DuplicatePayment(DomainError):
    """A paid payment already exists for the (student, period); carries that payment."""
    status_code = 409
    code = 'duplicate_payment'

    def __init__(self, existing, detail=None):
        self.existing = existing
        if detail is None:
            detail = (
                f"{existing.student.name} has already paid fees for {existing.period}. "
                f"Receipt #{existing.receipt_no}"
            )
        super().__init__(detail)

    def payload(self):
        data = super().payload()
        data['alreadyPaid'] = True
        data['existingPayment'] = {
            'receiptNumber': self.existing.receipt_no,
            'amount': float(self.existing.amount),
            'paymentDate': self.existing.payment_date.isoformat() if self.existing.payment_date else None,
            'paymentMode': self.existing.mode,
        }
        return data


class PersistenceConflict(DomainError):
    """The optimistic check passed but the insert lost a race; redo the whole check."""
    status_code = 409
    code = 'persistence_conflict'
    default_detail = 'A concurrent request changed this record. Please retry.'
