import os
from typing import Optional
from cryptography.fernet import Fernet
from cryptography.fernet import InvalidToken

# Token encryption configuration
def get_encryption_key() -> bytes:
    key = os.getenv("ENCRYPTION_KEY")
    if not key:
        raise ValueError("ENCRYPTION_KEY environment variable is not set")
    try:
        return key.encode() if isinstance(key, str) else key
    except Exception as e:
        raise ValueError(f"Invalid encryption key: {str(e)}")

def get_fernet() -> Fernet:
    return Fernet(get_encryption_key())

def encrypt_token(token: Optional[str]) -> str:
    """
    Encrypt a platform access token using Fernet symmetric encryption.
    Returns an empty string for empty tokens, which marks a disconnected store.
    """
    if not token:
        return ""

    f = get_fernet()
    encrypted_bytes = f.encrypt(token.encode())
    return encrypted_bytes.decode()

def decrypt_token(encrypted_token: Optional[str]) -> Optional[str]:
    """
    Decrypt a platform access token.
    Returns None for empty input or a token that does not decrypt with the current key.
    """
    if not encrypted_token:
        return None

    try:
        f = get_fernet()
        token_str = encrypted_token.decode() if isinstance(encrypted_token, bytes) else str(encrypted_token)
        decrypted_bytes = f.decrypt(token_str.encode())
        return decrypted_bytes.decode()
    except InvalidToken:
        return None
    except Exception as e:
        raise ValueError(f"Error decrypting token: {str(e)}")
