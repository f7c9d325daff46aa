"""
Error taxonomy shared by every contract operation.

Services raise these; only core.handlers translates them to HTTP responses.
"""


class ContractError(Exception):
    """Base exception for all contract errors"""

    code = 'error'

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidArgument(ContractError):
    """Raised when required fields are missing or malformed"""
    code = 'invalid_argument'


class FailedPrecondition(ContractError):
    """Raised when an operation is invoked against a challenge in the wrong state"""
    code = 'failed_precondition'


class InvalidState(ContractError):
    """Raised when a record cannot make the requested transition"""
    code = 'invalid_state'


class PermissionDenied(ContractError):
    """Raised when the caller does not hold the required role"""
    code = 'permission_denied'


class NotFound(ContractError):
    """Raised when a referenced challenge or transaction does not exist"""
    code = 'not_found'


class GatewayError(ContractError):
    """Raised when the escrow provider rejects or fails a call"""
    code = 'internal'
