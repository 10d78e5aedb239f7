"""
Security utilities for credential storage and data protection.
"""
import os
import json
import base64
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Optional, Dict
from pathlib import Path

import keyring
import keyring.errors
from cryptography.fernet import Fernet, InvalidToken

from ..config.settings import settings
from .logger import logger


# Credential store keys
ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"

SESSION_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY)


class CredentialStore(ABC):
    """
    Passive key/value surface for the session credentials.

    Values are opaque strings; the store never inspects them.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove a value. Missing keys are ignored."""

    def clear_all(self) -> None:
        """Remove every session key."""
        for key in SESSION_KEYS:
            self.clear(key)


class MemoryCredentialStore(CredentialStore):
    """Process-lifetime store, mostly useful for tests and scripts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def clear(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def clear_all(self) -> None:
        with self._lock:
            for key in SESSION_KEYS:
                self._values.pop(key, None)


class EncryptedFileCredentialStore(CredentialStore):
    """
    Encrypted JSON file store.

    Every value is Fernet-encrypted. The encryption key lives in the system
    keyring when one is available, otherwise in a 0600 key file next to the
    store.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        service_name: Optional[str] = None,
        use_keyring: bool = True,
    ):
        self.path = Path(path or settings.STORE_FILE)
        self.service_name = service_name or settings.CREDENTIAL_STORE_SERVICE
        self._use_keyring = use_keyring
        self._key_file = self.path.with_name(self.path.name + ".key")
        self._lock = threading.Lock()
        self._fernet = Fernet(self._init_encryption())

    def _init_encryption(self) -> bytes:
        """Load the encryption key, creating and persisting one if needed."""
        if self._use_keyring:
            try:
                key_b64 = keyring.get_password(self.service_name, "encryption_key")
                if key_b64:
                    return base64.b64decode(key_b64)

                key = Fernet.generate_key()
                keyring.set_password(self.service_name, "encryption_key",
                                     base64.b64encode(key).decode())
                return key
            except keyring.errors.KeyringError as e:
                logger.warning(f"Keyring not available, using local key file: {e}")

        key = self._load_key_locally()
        if key:
            return key

        key = Fernet.generate_key()
        self._store_key_locally(key)
        return key

    def _store_key_locally(self, key: bytes):
        """Store encryption key locally (less secure fallback)."""
        self._key_file.parent.mkdir(parents=True, exist_ok=True)
        self._key_file.write_text(base64.b64encode(key).decode(), encoding='utf-8')
        os.chmod(self._key_file, 0o600)

    def _load_key_locally(self) -> Optional[bytes]:
        """Load encryption key from local storage."""
        if not self._key_file.exists():
            return None
        return base64.b64decode(self._key_file.read_text(encoding='utf-8').strip())

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Unreadable credential file {self.path}: {e}")
            return {}

    def _write(self, values: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".session-")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(values, f)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            token = self._read().get(key)
        if token is None:
            return None
        try:
            return self._fernet.decrypt(token.encode('utf-8')).decode('utf-8')
        except InvalidToken:
            logger.error(f"Stored value for '{key}' cannot be decrypted, ignoring it")
            return None

    def set(self, key: str, value: str) -> None:
        token = self._fernet.encrypt(value.encode('utf-8')).decode('utf-8')
        with self._lock:
            values = self._read()
            values[key] = token
            self._write(values)

    def clear(self, key: str) -> None:
        with self._lock:
            values = self._read()
            if key in values:
                del values[key]
                self._write(values)

    def clear_all(self) -> None:
        with self._lock:
            values = self._read()
            remaining = {k: v for k, v in values.items() if k not in SESSION_KEYS}
            if remaining != values:
                self._write(remaining)


class KeyringCredentialStore(CredentialStore):
    """One system keyring entry per session key."""

    def __init__(self, service_name: Optional[str] = None):
        self.service_name = service_name or settings.CREDENTIAL_STORE_SERVICE
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        return keyring.get_password(self.service_name, key)

    def set(self, key: str, value: str) -> None:
        keyring.set_password(self.service_name, key, value)

    def clear(self, key: str) -> None:
        try:
            keyring.delete_password(self.service_name, key)
        except keyring.errors.PasswordDeleteError:
            pass  # not stored

    def clear_all(self) -> None:
        with self._lock:
            super().clear_all()


def create_credential_store(backend: Optional[str] = None) -> CredentialStore:
    """
    Build the configured credential store.

    Args:
        backend: 'memory', 'file' or 'keyring'; defaults to CREDENTIAL_BACKEND

    Returns:
        CredentialStore instance
    """
    backend = (backend or settings.CREDENTIAL_BACKEND).lower()
    if backend == "memory":
        return MemoryCredentialStore()
    if backend == "file":
        return EncryptedFileCredentialStore()
    if backend == "keyring":
        return KeyringCredentialStore()
    raise ValueError(f"Unknown credential backend: {backend}")


class DataProtection:
    """Utility class for data protection."""

    @staticmethod
    def mask_sensitive_data(data: Optional[str], mask_char: str = "*", visible_chars: int = 4) -> str:
        """
        Mask sensitive data for display purposes.

        Args:
            data: Sensitive data to mask
            mask_char: Character to use for masking
            visible_chars: Number of characters to show at the end

        Returns:
            Masked string
        """
        if not data or len(data) <= visible_chars:
            return mask_char * len(data) if data else ""

        return mask_char * (len(data) - visible_chars) + data[-visible_chars:]
