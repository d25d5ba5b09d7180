"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidLoanTermsError(DomainException):
    """Principal, rate or term is outside the amortization domain"""

    pass


class CredentialStoreError(DomainException):
    """Persisted session data is missing or malformed"""

    pass
