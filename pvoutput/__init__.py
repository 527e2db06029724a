"""
PVOutput client library.

Encodes daily outputs and live statuses into the PVOutput r2 wire formats,
submits them (singly or in batches) over HTTPS, and decodes report lines
back into records.

CHANGELOG:
- 2026-10-09: Initial creation

TODO:
- None
"""

from pvoutput.client import Client
from pvoutput.config import PVOutputSettings
from pvoutput.errors import (
    BatchEncodeError,
    BatchSizeError,
    MissingFieldError,
    ParseError,
    PVOutputError,
    RateLimitExceededError,
    TransportError,
)
from pvoutput.output import BatchOutput, Output, decode_output, decode_outputs
from pvoutput.status import BatchStatus, Cumulative, Status, decode_status
from pvoutput.wire import BATCH_MAX_SIZE, BATCH_MAX_SIZE_DONATING, UNSET

__all__ = [
    "BATCH_MAX_SIZE",
    "BATCH_MAX_SIZE_DONATING",
    "UNSET",
    "BatchEncodeError",
    "BatchOutput",
    "BatchSizeError",
    "BatchStatus",
    "Client",
    "Cumulative",
    "MissingFieldError",
    "Output",
    "PVOutputError",
    "PVOutputSettings",
    "ParseError",
    "RateLimitExceededError",
    "Status",
    "TransportError",
    "decode_output",
    "decode_outputs",
    "decode_status",
]
