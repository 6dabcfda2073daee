"""
Payment specific codes.

Stripe statuses are mirrored verbatim into donation records, so there is no
provider->internal status table here.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    SIGNATURE_ERROR = 60002
