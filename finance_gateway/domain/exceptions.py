"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Referenced account, card, category or transaction does not exist for the user"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or inconsistent with the accounts/cards it references"""

    pass


class InvalidImportError(DomainException):
    """Statement CSV is empty, lacks the expected headers, or has no usable rows"""

    pass


class ClassificationError(DomainException):
    """Category suggestion service returned an error or is unavailable"""

    pass
