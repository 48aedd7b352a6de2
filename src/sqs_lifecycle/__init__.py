"""
Package: sqs_lifecycle
Description: Consumer-side lifecycle helpers for SQS messages.

Resolves the source queue of a delivered message, extends its
visibility timeout on a backoff schedule, and deletes it once
processing succeeded.
"""

from sqs_lifecycle.config.settings import settings
from sqs_lifecycle.utils.logger import configure_logging

configure_logging(settings.log_level)

from sqs_lifecycle.models import MessageContext, OperationResult, QueueIdentity, SQSMessageEnvelope  # noqa: E402
from sqs_lifecycle.sqs_queue import (  # noqa: E402
    AsyncVisibilityCoordinator,
    BackoffRequest,
    BackoffStrategy,
    MalformedEnvelopeError,
    VisibilityCoordinator,
    compute_visibility_timeout,
    parse_arn,
    resolve_message_context,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncVisibilityCoordinator",
    "BackoffRequest",
    "BackoffStrategy",
    "MalformedEnvelopeError",
    "MessageContext",
    "OperationResult",
    "QueueIdentity",
    "SQSMessageEnvelope",
    "VisibilityCoordinator",
    "compute_visibility_timeout",
    "parse_arn",
    "resolve_message_context",
]
