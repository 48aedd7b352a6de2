"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains the data models used by the SQS lifecycle helpers:
- SQSMessageEnvelope: Inbound Lambda SQS record
- QueueIdentity / MessageContext: Resolved queue address and receipt handle
- OperationResult: Outcome of a remote SQS call
"""

from .envelope import MessageContext, QueueIdentity, SQSMessageEnvelope
from .result import OperationResult

__all__ = [
    "SQSMessageEnvelope",
    "QueueIdentity",
    "MessageContext",
    "OperationResult",
]
