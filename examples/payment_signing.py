#!/usr/bin/env python3
"""
Payment Request Signing Example

This example demonstrates:
- Signing a WeChat Pay style request with a trailing secret key
- Embedding one record inside another
- Custom value rendering through ``marshal_qsign``
- Keyed HMAC-SHA256 signatures with base64 output
- Routing library debug logs to JSON lines
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Optional

from qsign import DigestOptions, Embedded, Signer, TypeDescriptorCache
from qsign.encoding import get_encoder
from qsign.generators import secret_key_suffix
from qsign.hashing import hmac_hasher
from qsign.logging_pipeline import configure_structured_logging


class UnixTime:
    """Timestamp rendered as whole seconds since the epoch."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def marshal_qsign(self) -> str:
        return str(int(self.moment.timestamp()))


@dataclass
class Merchant:
    app_id: str = field(default="", metadata={"qsign": "appid"})
    mch_id: int = field(default=0, metadata={"qsign": "mch_id"})


@dataclass
class UnifiedOrder:
    merchant: Annotated[Optional[Merchant], Embedded()] = None
    device_info: str = ""
    body: str = ""
    nonce_str: str = ""
    total_fee: int = 0
    time_start: Optional[UnixTime] = None
    sign: str = field(default="", metadata={"qsign": "-"})


def sign_with_secret_key(order):
    """Sign using the MD5 scheme with ``&key=<secret>`` appended."""
    signer = Signer(
        DigestOptions(suffix_generator=secret_key_suffix("192006250b4c09247ec02edce69f6a2d"))
    )
    print(f"Digest:    {signer.digest(order).decode('utf-8')}")
    order.sign = signer.sign(order).upper()
    print(f"Signature: {order.sign}")
    print(f"Verified:  {signer.verify(order, order.sign.lower())}")
    return order


def sign_with_hmac(order):
    """Sign using HMAC-SHA256 with a pipe delimiter and base64 output."""
    signer = Signer(
        DigestOptions(hasher=hmac_hasher("shared-secret"), encoder=get_encoder("base64")),
        cache=TypeDescriptorCache(),
    )
    signer.set_delimiter("|")
    print(f"Digest:    {signer.digest(order).decode('utf-8')}")
    print(f"Signature: {signer.sign(order)} ({signer.signature_length} chars)")


def main():
    handler = configure_structured_logging(level=logging.DEBUG)
    try:
        order = UnifiedOrder(
            merchant=Merchant(app_id="wxd930ea5d5a258f4f", mch_id=10000100),
            device_info="1000",
            body="test",
            nonce_str="ibuaiVcKdpRxkhJA",
            total_fee=1,
            time_start=UnixTime(datetime(2024, 1, 1, tzinfo=timezone.utc)),
        )

        print("MD5 with secret key")
        print("=" * 40)
        sign_with_secret_key(order)

        print()
        print("HMAC-SHA256 / base64")
        print("=" * 40)
        sign_with_hmac(order)
    finally:
        logging.getLogger("qsign").removeHandler(handler)


if __name__ == "__main__":
    main()
