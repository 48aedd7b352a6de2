"""
Package: sqs_queue
Description: Lifecycle operations for a single delivered SQS message.

Resolves a message's source queue and receipt handle, extends its
visibility timeout on a backoff schedule, and deletes it once
processing succeeded.
"""

from .async_coordinator import AsyncVisibilityCoordinator
from .backoff import BackoffRequest, BackoffStrategy, compute_visibility_timeout
from .coordinator import VisibilityCoordinator
from .exceptions import MalformedEnvelopeError
from .resolver import parse_arn, resolve_message_context

__all__ = [
    "AsyncVisibilityCoordinator",
    "BackoffRequest",
    "BackoffStrategy",
    "MalformedEnvelopeError",
    "VisibilityCoordinator",
    "compute_visibility_timeout",
    "parse_arn",
    "resolve_message_context",
]
