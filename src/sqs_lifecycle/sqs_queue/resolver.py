"""
Module: resolver.py
Description: Resolves the source queue and receipt handle of an SQS message.

Turns an inbound Lambda SQS record into a MessageContext: the queue's
region, owner account and name (and so its queue URL) plus the receipt
handle needed to change visibility or delete the message.

Key Components:
- parse_arn(): Split an ARN into partition/service/region/account/resource
- resolve_message_context(): Envelope -> MessageContext

Dependencies: pydantic, typing, logger
"""

from typing import Any, Dict, NamedTuple, Union

from pydantic import ValidationError

from sqs_lifecycle.models.envelope import MessageContext, QueueIdentity, SQSMessageEnvelope
from sqs_lifecycle.sqs_queue.exceptions import MalformedEnvelopeError
from sqs_lifecycle.utils.logger import get_logger

logger = get_logger(__name__)


class ParsedArn(NamedTuple):
    partition: str
    service: str
    region: str
    account: str
    resource: str


def parse_arn(arn: str) -> ParsedArn:
    """
    Parse an ARN of the form ``arn:partition:service:region:account:resource``.

    The resource part keeps any further ``:`` separators.

    Raises:
        MalformedEnvelopeError: If the ARN is missing or lacks a region,
            account or resource segment
    """
    if not arn or not isinstance(arn, str):
        raise MalformedEnvelopeError("eventSourceARN is missing")

    parts = arn.split(':', 5)
    if len(parts) != 6 or parts[0] != 'arn':
        raise MalformedEnvelopeError(f"eventSourceARN is not a valid ARN: {arn!r}")

    parsed = ParsedArn(*parts[1:])
    for segment in ('partition', 'service', 'region', 'account', 'resource'):
        if not getattr(parsed, segment):
            raise MalformedEnvelopeError(f"eventSourceARN has no {segment} segment: {arn!r}")

    return parsed


def resolve_message_context(
    envelope: Union[SQSMessageEnvelope, Dict[str, Any]]
) -> MessageContext:
    """
    Derive the queue identity and receipt handle of a delivered message.

    The owner id comes from the ``SenderId`` attribute, the queue name from
    the resource part of ``eventSourceARN`` and the region from ``awsRegion``.

    Args:
        envelope: SQSMessageEnvelope or a raw Lambda SQS record

    Returns:
        Frozen MessageContext for the message

    Raises:
        MalformedEnvelopeError: If any of those parts, or the receipt
            handle, cannot be extracted
    """
    if not isinstance(envelope, SQSMessageEnvelope):
        try:
            envelope = SQSMessageEnvelope.model_validate(envelope)
        except ValidationError as e:
            raise MalformedEnvelopeError(f"record failed validation: {e.error_count()} error(s)") from e

    message_id = envelope.message_id

    try:
        arn = parse_arn(envelope.event_source_arn)

        if not envelope.sender_id:
            raise MalformedEnvelopeError("SenderId attribute is missing")
        if not envelope.aws_region:
            raise MalformedEnvelopeError("awsRegion is missing")
        if not envelope.receipt_handle:
            raise MalformedEnvelopeError("receiptHandle is missing")

    except MalformedEnvelopeError as e:
        e.message_id = message_id
        logger.warning(
            "Failed to resolve SQS message context",
            message_id=message_id,
            reason=e.reason
        )
        raise

    context = MessageContext(
        identity=QueueIdentity(
            region=envelope.aws_region,
            owner_id=envelope.sender_id,
            queue_name=arn.resource
        ),
        receipt_handle=envelope.receipt_handle,
        message_id=message_id,
        approximate_receive_count=envelope.approximate_receive_count
    )

    logger.debug(
        "SQS message context resolved",
        message_id=message_id,
        queue_url=context.queue_url,
        approximate_receive_count=context.approximate_receive_count
    )

    return context
