# server/core/errors.py


class AccountError(Exception):
    """
    Base class for every failure the account endpoints report to a client.
    Carries the HTTP status and the message placed in the JSON body.
    """
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AccountError):
    status_code = 400


class ConflictError(AccountError):
    status_code = 409


class AuthError(AccountError):
    status_code = 401


class InternalError(AccountError):
    status_code = 500

    def __init__(self, message: str = "Server error. Please try again."):
        super().__init__(message)
