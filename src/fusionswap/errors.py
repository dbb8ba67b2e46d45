"""Named rejection codes for swap operations.

Every rejected call raises a SwapError subclass before any balance or
watermark is touched. The ``code`` attribute is the stable identifier
surfaced to callers (HTTP bodies, logs).
"""

from typing import Optional


class SwapError(Exception):
    """Base class for all swap rejections."""

    code = "ESWAP"
    default_message = "Swap operation rejected"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(f"{self.code}: {self.message}")


# Parameter validation
class InvalidAuctionParamsError(SwapError):
    code = "EINVALID_AUCTION_PARAMS"
    default_message = "Invalid auction parameters"


class InvalidOrderParamsError(SwapError):
    code = "EINVALID_ORDER_PARAMS"
    default_message = "Invalid order parameters"


class InvalidHashesError(SwapError):
    code = "EINVALID_HASHES"
    default_message = "Hash set must be non-empty 32-byte digests"


class InvalidResolverWhitelistError(SwapError):
    code = "EINVALID_RESOLVER_WHITELIST"
    default_message = "Resolver whitelist must not be empty"


class InvalidTimelockError(SwapError):
    code = "EINVALID_TIMELOCK"
    default_message = "Timelock duration out of range"


# Authorization
class InvalidCallerError(SwapError):
    code = "EINVALID_CALLER"
    default_message = "Caller is not allowed to perform this operation"


class InvalidResolverError(SwapError):
    code = "EINVALID_RESOLVER"
    default_message = "Taker is not a whitelisted resolver"


# Temporal / phase
class InvalidPhaseError(SwapError):
    code = "EINVALID_PHASE"
    default_message = "Operation not permitted in the current timelock phase"


class AuctionNotStartedError(SwapError):
    code = "EAUCTION_NOT_STARTED"
    default_message = "Auction has not started"


class AuctionEndedError(SwapError):
    code = "EAUCTION_ENDED"
    default_message = "Auction has ended"


# State consistency
class SegmentAlreadyFilledError(SwapError):
    code = "ESEGMENT_ALREADY_FILLED"
    default_message = "Segment already filled"


class InvalidSegmentError(SwapError):
    code = "EINVALID_SEGMENT"
    default_message = "Segment index out of range"


class InvalidFillTypeError(SwapError):
    code = "EINVALID_FILL_TYPE"
    default_message = "Fill type does not match the order's hashlock"


class ObjectDoesNotExistError(SwapError):
    code = "EOBJECT_DOES_NOT_EXIST"
    default_message = "Object does not exist"


class InsufficientBalanceError(SwapError):
    code = "EINSUFFICIENT_BALANCE"
    default_message = "Insufficient balance"


# Cryptographic
class InvalidSecretError(SwapError):
    code = "EINVALID_SECRET"
    default_message = "Secret does not match the hashlock"


AUTHORIZATION_CODES = frozenset({InvalidCallerError.code, InvalidResolverError.code})
