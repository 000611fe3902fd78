"""Wire encoding for transfer payloads and messaging options.

Payload layout (big-endian):
    recipient_len (2 bytes) | recipient (UTF-8) | amount (32 bytes)

Options follow the type-3 executor format:
    0x0003 | worker_id (1) | option_len (2) | option_type (1) | option_data
"""

import struct
from dataclasses import dataclass

from lpbridge.errors import InvalidAmount, InvalidOptions, InvalidPayload, InvalidRecipient

UINT256_MAX = 2**256 - 1
UINT128_MAX = 2**128 - 1

OPTIONS_TYPE_3 = 3
EXECUTOR_WORKER_ID = 1
OPTION_TYPE_LZRECEIVE = 1


@dataclass(frozen=True)
class TransferPayload:
    recipient: str
    amount: int


def encode_payload(recipient: str, amount: int) -> bytes:
    """Encode a transfer payload."""
    if not recipient:
        raise InvalidRecipient(recipient)
    if amount < 0 or amount > UINT256_MAX:
        raise InvalidAmount(amount)

    raw = recipient.encode("utf-8")
    if len(raw) > 0xFFFF:
        raise InvalidRecipient(recipient)
    return struct.pack(">H", len(raw)) + raw + amount.to_bytes(32, "big")


def decode_payload(payload: bytes) -> TransferPayload:
    """Decode a transfer payload.

    Raises:
        InvalidPayload: payload is truncated, has trailing bytes or the
            recipient is not valid UTF-8
    """
    if len(payload) < 2:
        raise InvalidPayload("Payload too short")
    (length,) = struct.unpack(">H", payload[:2])
    if len(payload) != 2 + length + 32:
        raise InvalidPayload(
            f"Payload length mismatch: expected {2 + length + 32}, got {len(payload)}"
        )

    try:
        recipient = payload[2 : 2 + length].decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidPayload(f"Recipient is not valid UTF-8: {e}") from e
    amount = int.from_bytes(payload[2 + length :], "big")
    return TransferPayload(recipient=recipient, amount=amount)


def lz_receive_option(gas: int, value: int = 0) -> bytes:
    """Build type-3 options carrying a single receive-gas option."""
    if not 0 <= gas <= UINT128_MAX or not 0 <= value <= UINT128_MAX:
        raise InvalidOptions("Gas and value must fit in uint128")
    data = gas.to_bytes(16, "big") + value.to_bytes(16, "big")
    return (
        struct.pack(">H", OPTIONS_TYPE_3)
        + struct.pack(">BHB", EXECUTOR_WORKER_ID, len(data) + 1, OPTION_TYPE_LZRECEIVE)
        + data
    )


def parse_options(options: bytes) -> list[tuple[int, int, bytes]]:
    """Split type-3 options into (worker_id, option_type, data) entries."""
    if not options:
        return []
    if len(options) < 2 or struct.unpack(">H", options[:2])[0] != OPTIONS_TYPE_3:
        raise InvalidOptions("Options must use the type-3 format")

    entries = []
    cursor = 2
    while cursor < len(options):
        if cursor + 4 > len(options):
            raise InvalidOptions("Truncated option header")
        worker_id, size, option_type = struct.unpack(">BHB", options[cursor : cursor + 4])
        end = cursor + 3 + size
        if size < 1 or end > len(options):
            raise InvalidOptions("Truncated option data")
        entries.append((worker_id, option_type, options[cursor + 4 : end]))
        cursor = end
    return entries


def combine_options(enforced: bytes, extra: bytes) -> bytes:
    """Append the caller's option entries after the enforced ones."""
    if not extra:
        return enforced
    parse_options(extra)
    if not enforced:
        return extra
    parse_options(enforced)
    return enforced + extra[2:]


def receive_gas(options: bytes) -> int:
    """Total receive gas requested across all receive options."""
    total = 0
    for worker_id, option_type, data in parse_options(options):
        if worker_id == EXECUTOR_WORKER_ID and option_type == OPTION_TYPE_LZRECEIVE:
            total += int.from_bytes(data[:16], "big")
    return total
