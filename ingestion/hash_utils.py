import hashlib


def sha256_text(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def sha256_bytes(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()
