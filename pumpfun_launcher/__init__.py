"""
Pump.fun token launcher: metadata upload, remote transaction build, signing and submission
"""

from .exceptions import (
    BuildFailure,
    ConfigurationError,
    ConfirmationTimeout,
    OnChainRejection,
    SubmissionFailure,
    TokenLaunchError,
    UploadFailure,
)
from .launcher import LaunchAgent, TokenLauncher, launch_pumpfun_token
from .metadata import upload_metadata
from .models import LaunchOptions, LaunchResult, MetadataResponse, TokenMetadata
from .submitter import sign_and_send
from .transaction import build_create_payload, create_token_transaction

__version__ = "0.1.0"

__all__ = [
    'BuildFailure',
    'ConfigurationError',
    'ConfirmationTimeout',
    'LaunchAgent',
    'LaunchOptions',
    'LaunchResult',
    'MetadataResponse',
    'OnChainRejection',
    'SubmissionFailure',
    'TokenLaunchError',
    'TokenLauncher',
    'TokenMetadata',
    'UploadFailure',
    'build_create_payload',
    'create_token_transaction',
    'launch_pumpfun_token',
    'sign_and_send',
    'upload_metadata',
]
