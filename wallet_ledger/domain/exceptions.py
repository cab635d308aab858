"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class WalletNotFoundError(DomainException):
    """Wallet does not exist"""

    pass


class TransactionNotFoundError(DomainException):
    """Transaction does not exist"""

    pass


class NotACreditWalletError(DomainException):
    """Operation only applies to credit wallets"""

    pass


class InvalidPaymentError(DomainException):
    """Payment amount is not payable against the current statement"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or invalid"""

    pass


class InvalidWalletDataError(DomainException):
    """Wallet settings are malformed or invalid"""

    pass
