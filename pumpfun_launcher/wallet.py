import base64
import logging
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from solders.keypair import Keypair

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PRIVATE_KEY_ENV = "PUMP_FUN_PRIVATE_KEY"
PLACEHOLDER_KEY = "your_base58_private_key_here"


class WalletManager:
    """
    Loads the paying wallet keypair for launches

    Supported sources:
    1. Environment Variable (base58 secret key)
    2. Encrypted File Storage (Fernet)
    3. Runtime Key Injection
    """

    @staticmethod
    def validate_base58_key(key: str) -> bool:
        """Check whether ``key`` is a valid base58 encoded Solana secret key"""
        try:
            Keypair.from_base58_string(key)
            return True
        except Exception:
            return False

    @classmethod
    def from_base58(cls, key: str) -> Keypair:
        if not cls.validate_base58_key(key):
            raise ConfigurationError("Invalid Base58 private key format")
        return Keypair.from_base58_string(key)

    @classmethod
    def from_env(cls, env_var: str = PRIVATE_KEY_ENV) -> Optional[Keypair]:
        """
        Retrieve keypair from environment variable

        Returns:
            Optional[Keypair]: Solana keypair, or None when the variable is unset
        """
        priv_key = os.getenv(env_var, "")
        if not priv_key or priv_key == PLACEHOLDER_KEY:
            return None
        return cls.from_base58(priv_key)

    @classmethod
    def encrypt_key(cls, key: str, encryption_key: bytes) -> str:
        """Encrypt a base58 private key, returning base64 text for storage"""
        if not cls.validate_base58_key(key):
            raise ConfigurationError("Invalid Base58 private key")
        encrypted_key = Fernet(encryption_key).encrypt(key.encode())
        return base64.b64encode(encrypted_key).decode()

    @classmethod
    def decrypt_key(cls, encrypted_key: str, encryption_key: bytes) -> str:
        try:
            decrypted_key = Fernet(encryption_key).decrypt(base64.b64decode(encrypted_key)).decode()
        except InvalidToken as e:
            raise ConfigurationError("Unable to decrypt wallet key: wrong encryption key") from e

        if not cls.validate_base58_key(decrypted_key):
            raise ConfigurationError("Decryption resulted in an invalid key")
        return decrypted_key

    @classmethod
    def save_encrypted_key(cls, key: str, file_path: str, encryption_key: Optional[bytes] = None) -> bytes:
        """
        Save an encrypted private key to a file

        Returns:
            bytes: Encryption key used, generated when not supplied
        """
        if encryption_key is None:
            encryption_key = Fernet.generate_key()

        encrypted_key = cls.encrypt_key(key, encryption_key)
        with open(file_path, 'w') as f:
            f.write(encrypted_key)

        return encryption_key

    @classmethod
    def from_encrypted_file(cls, file_path: str, encryption_key: bytes) -> Keypair:
        """Load keypair from an encrypted key file"""
        try:
            with open(file_path, 'r') as f:
                encrypted_key = f.read().strip()
        except OSError as e:
            raise ConfigurationError(f"Unable to read key file {file_path}: {e}") from e

        keypair = Keypair.from_base58_string(cls.decrypt_key(encrypted_key, encryption_key))
        logger.debug(f"Loaded wallet {keypair.pubkey()} from {file_path}")
        return keypair
