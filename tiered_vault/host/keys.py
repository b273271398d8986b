"""
Account keys: secp256k1 key pairs, account addresses and signed calls
"""

import hashlib
import re
from typing import Tuple

from ecdsa import BadSignatureError, MalformedPointError, SECP256k1, SigningKey, VerifyingKey

from ..exceptions import InvalidSignature


class AccountKey:
    """Key pair behind one vault principal"""

    def __init__(self, private_key: bytes = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    @classmethod
    def from_hex(cls, private_hex: str) -> 'AccountKey':
        return cls(bytes.fromhex(private_hex))

    def get_public_key_hex(self) -> str:
        """Compressed public key in hex"""
        return self.public_key.to_string("compressed").hex()

    @property
    def address(self) -> str:
        return address_from_public_key(self.get_public_key_hex())

    def sign_message(self, message: bytes) -> str:
        """Sign message and return signature in hex"""
        signature = self.private_key.sign_deterministic(message, hashfunc=hashlib.sha256)
        return signature.hex()

    def sign_call(self, operation: str, *args) -> str:
        """Sign the canonical payload of a vault call"""
        return self.sign_message(call_payload(operation, *args))

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key pair and return (private_key_hex, public_key_hex)"""
        key = AccountKey()
        return key.private_key.to_string().hex(), key.get_public_key_hex()


def hash160(data: bytes) -> bytes:
    """20-byte account digest (truncated double SHA256)"""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:20]


ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def is_address(value) -> bool:
    """Check if value looks like an account address"""
    return isinstance(value, str) and ADDRESS_RE.fullmatch(value) is not None


def address_from_public_key(pubkey_hex: str) -> str:
    """Account address for a hex public key"""
    return "0x" + hash160(bytes.fromhex(pubkey_hex)).hex()


def call_payload(operation: str, *args) -> bytes:
    """Canonical bytes a caller signs, e.g. b"approve:7" """
    return ":".join([operation] + [str(a) for a in args]).encode()


def verify_signature(message: bytes, signature_hex: str, pubkey_hex: str) -> bool:
    """Verify signature against message and public key"""
    try:
        vk = VerifyingKey.from_string(bytes.fromhex(pubkey_hex), curve=SECP256k1)
        return vk.verify(bytes.fromhex(signature_hex), message, hashfunc=hashlib.sha256)
    except (BadSignatureError, MalformedPointError, ValueError):
        return False


def authenticate_call(address: str, pubkey_hex: str, signature_hex: str, operation: str, *args) -> str:
    """Return the caller's address if the signed call is genuine, else raise InvalidSignature"""
    try:
        derived = address_from_public_key(pubkey_hex)
    except ValueError:
        raise InvalidSignature("Public key is not valid hex")

    if derived != address:
        raise InvalidSignature("Public key does not belong to caller", account=address)

    if not verify_signature(call_payload(operation, *args), signature_hex, pubkey_hex):
        raise InvalidSignature(account=address)

    return address
