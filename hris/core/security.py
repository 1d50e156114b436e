import json
import logging
from typing import List, Optional
from cryptography.fernet import Fernet, InvalidToken
from hris.core.config import settings

logger = logging.getLogger(__name__)

# Dedicated key, separate from the JWT secret
_cipher = Fernet(settings.fernet_key)


def encrypt_data(data: str) -> str:
    """Encrypt sensitive string data."""
    if not data:
        return data
    try:
        return _cipher.encrypt(data.encode()).decode()
    except Exception as e:
        logger.error(f"Encryption failed: {e}")
        raise ValueError(f"Encryption failed, refusing to store plaintext: {e}") from e


def decrypt_data(encrypted_data: str) -> str:
    """Decrypt sensitive string data."""
    if not encrypted_data:
        return encrypted_data
    try:
        return _cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken as e:
        logger.warning(f"Decryption failed (possibly not encrypted): {e}")
        return encrypted_data


def encrypt_codes(codes: Optional[List[str]]) -> Optional[str]:
    """Serialize and encrypt a list of voucher codes."""
    if not codes:
        return None
    return encrypt_data(json.dumps(codes))


def decrypt_codes(token: Optional[str]) -> List[str]:
    if not token:
        return []
    raw = decrypt_data(token)
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Stored codes are not valid JSON")
        return []
