"""Address format checks run before any index query.

Only the textual shape is checked (network prefix, bech32 alphabet,
length). A malformed address never reaches the index: listing endpoints
answer with an empty result instead.
"""

from __future__ import annotations

import re

# bech32 data alphabet
_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"

# Platform (account) addresses: mainnet ``ccc``, testnet ``tcc``
_PLATFORM_PREFIXES = ("ccc", "tcc")
# Asset transfer addresses: mainnet ``cca``, testnet ``tca``
_ASSET_PREFIXES = ("cca", "tca")

_PLATFORM_RE = re.compile(rf"^(?:{'|'.join(_PLATFORM_PREFIXES)})[{_CHARSET}]{{38,}}$")
_ASSET_RE = re.compile(rf"^(?:{'|'.join(_ASSET_PREFIXES)})[{_CHARSET}]{{38,}}$")


def validate_platform_address(address: str) -> bool:
    """Check that *address* looks like a platform (account) address."""
    return bool(_PLATFORM_RE.match(address))


def validate_asset_address(address: str) -> bool:
    """Check that *address* looks like an asset transfer address."""
    return bool(_ASSET_RE.match(address))
