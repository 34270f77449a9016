"""
Custom error types for the token launch pipeline.
"""

from typing import Any, List, Optional


class TokenLaunchError(Exception):
    """Base exception for Pump.fun token launch errors"""
    pass


class ConfigurationError(TokenLaunchError):
    """Raised when there's an issue with launch configuration"""
    pass


class UploadFailure(TokenLaunchError):
    """Raised when the metadata host rejects the upload"""

    def __init__(self, status_code: int, status_text: str):
        self.status_code = status_code
        self.status_text = status_text
        super().__init__(f"Metadata upload failed: {status_text}")


class BuildFailure(TokenLaunchError):
    """Raised when the transaction builder returns a non-success status"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Transaction creation failed: {status_code} - {body}")


class SubmissionFailure(TokenLaunchError):
    """Raised when preflight or broadcast of a signed transaction fails"""

    def __init__(self, message: str, logs: Optional[List[str]] = None):
        self.logs = logs
        super().__init__(message)


class OnChainRejection(TokenLaunchError):
    """Raised when the network confirms a transaction whose execution failed"""

    def __init__(self, err: Any, signature: Optional[str] = None):
        self.err = err
        self.signature = signature
        super().__init__(f"Transaction failed: {err}")


class ConfirmationTimeout(TokenLaunchError):
    """Raised when the blockhash expires before the transaction is confirmed"""

    def __init__(self, signature: str, message: str = ""):
        self.signature = signature
        super().__init__(message or f"Transaction {signature} was not confirmed before its blockhash expired")


__all__ = [
    'TokenLaunchError',
    'ConfigurationError',
    'UploadFailure',
    'BuildFailure',
    'SubmissionFailure',
    'OnChainRejection',
    'ConfirmationTimeout',
]
