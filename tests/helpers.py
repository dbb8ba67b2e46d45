"""Shared constants and builders for the test suite."""

from fusionswap.core.hashlock import hash_secret

MAKER = "0xmaker"
RESOLVER = "0xresolver"
OTHER_RESOLVER = "0xresolver2"
STRANGER = "0xstranger"
ASSET = "USDC"
NATIVE = "NATIVE"

T0 = 1_700_000_000


def make_secrets(count: int) -> list[bytes]:
    """Deterministic distinct 32-byte secrets."""
    return [bytes([i + 1]) * 32 for i in range(count)]


def make_hashes(secrets: list[bytes]) -> list[bytes]:
    return [hash_secret(s) for s in secrets]
