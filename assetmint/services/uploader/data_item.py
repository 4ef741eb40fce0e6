"""
ANS-104 data items signed with a Solana (ed25519) wallet.

Binary layout, all integers little-endian:

    signature type (2) | signature (64) | owner (32)
    target flag (1) [+ target (32)] | anchor flag (1) [+ anchor (32)]
    tag count (8) | tag bytes length (8) | Avro-encoded tags | data

The signature covers the SHA-384 deep hash of the item's fields, and the
item id is the base64url SHA-256 of the signature.
"""

import base64
import hashlib
import struct
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from assetmint.core.exceptions import ValidationError
from assetmint.services.wallet import Keypair

SOLANA_SIGNATURE_TYPE = 4
MAX_TAGS = 128
MAX_TAG_NAME_BYTES = 1024
MAX_TAG_VALUE_BYTES = 3072

Tag = Tuple[str, str]


def _sha384(data: bytes) -> bytes:
    return hashlib.sha384(data).digest()


def _encode_long(value: int) -> bytes:
    """Avro long: zigzag then base-128 varint"""
    value = (value << 1) ^ (value >> 63)
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def encode_tags(tags: Sequence[Tag]) -> bytes:
    """Avro array of {name: bytes, value: bytes}. No tags encode to nothing."""
    if not tags:
        return b""
    out = bytearray(_encode_long(len(tags)))
    for name, value in tags:
        for part in (name.encode("utf-8"), value.encode("utf-8")):
            out += _encode_long(len(part)) + part
    out += _encode_long(0)
    return bytes(out)


def deep_hash(data: Union[bytes, List]) -> bytes:
    if isinstance(data, (list, tuple)):
        acc = _sha384(b"list" + str(len(data)).encode())
        for chunk in data:
            acc = _sha384(acc + deep_hash(chunk))
        return acc
    tagged = _sha384(b"blob" + str(len(data)).encode()) + _sha384(data)
    return _sha384(tagged)


def _check_tags(tags: Sequence[Tag]) -> None:
    if len(tags) > MAX_TAGS:
        raise ValidationError(f"Data items allow at most {MAX_TAGS} tags, got {len(tags)}")
    for name, value in tags:
        if not name or len(name.encode("utf-8")) > MAX_TAG_NAME_BYTES:
            raise ValidationError(f"Invalid tag name {name!r}")
        if not value or len(value.encode("utf-8")) > MAX_TAG_VALUE_BYTES:
            raise ValidationError(f"Invalid value for tag {name!r}")


@dataclass(frozen=True)
class DataItem:
    signature: bytes
    owner: bytes
    tag_count: int
    raw_tags: bytes
    data: bytes

    @property
    def id(self) -> str:
        digest = hashlib.sha256(self.signature).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

    def to_bytes(self) -> bytes:
        return b"".join([
            struct.pack("<H", SOLANA_SIGNATURE_TYPE),
            self.signature,
            self.owner,
            b"\x00",  # no target
            b"\x00",  # no anchor
            struct.pack("<Q", self.tag_count),
            struct.pack("<Q", len(self.raw_tags)),
            self.raw_tags,
            self.data,
        ])

    @property
    def size(self) -> int:
        return 2 + len(self.signature) + len(self.owner) + 2 + 16 + len(self.raw_tags) + len(self.data)


def signature_data(owner: bytes, raw_tags: bytes, data: bytes) -> bytes:
    return deep_hash([
        b"dataitem",
        b"1",
        str(SOLANA_SIGNATURE_TYPE).encode(),
        owner,
        b"",  # target
        b"",  # anchor
        raw_tags,
        data,
    ])


def create_data_item(data: bytes, tags: Iterable[Tag], signer: Keypair) -> DataItem:
    """Build and sign a data item owned by `signer`"""
    tags = list(tags)
    _check_tags(tags)
    owner = signer.public_key_bytes
    raw_tags = encode_tags(tags)
    signature = signer.sign(signature_data(owner, raw_tags, data))
    return DataItem(signature=signature, owner=owner, tag_count=len(tags), raw_tags=raw_tags, data=bytes(data))
