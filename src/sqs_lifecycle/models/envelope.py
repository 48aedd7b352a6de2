"""
Module: envelope.py
Description: Inbound SQS message envelope and the queue context derived from it.

Key Components:
- SQSMessageEnvelope: Lambda SQS event record, parsed by alias
- QueueIdentity: region/owner/queue-name triple and its queue URL
- MessageContext: resolved identity plus the delivery (receipt) handle

Dependencies: pydantic, typing
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from sqs_lifecycle.constants import APPROXIMATE_RECEIVE_COUNT, QUEUE_URL_TEMPLATE, SENDER_ID


class SQSMessageEnvelope(BaseModel):
    """
    A single record of an SQS-triggered Lambda event.

    Field names follow the Lambda record keys through aliases, so a raw
    record can be passed straight to ``SQSMessageEnvelope.model_validate``.
    Presence checks happen in the resolver, not here, so that a partial
    record can still be inspected and logged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message_id: Optional[str] = Field(default=None, alias="messageId")
    receipt_handle: Optional[str] = Field(default=None, alias="receiptHandle")
    body: Optional[str] = Field(default=None)
    attributes: Dict[str, str] = Field(
        default_factory=dict,
        description="SQS system attributes (SenderId, ApproximateReceiveCount, ...)"
    )
    message_attributes: Dict[str, Any] = Field(default_factory=dict, alias="messageAttributes")
    event_source_arn: Optional[str] = Field(default=None, alias="eventSourceARN")
    aws_region: Optional[str] = Field(default=None, alias="awsRegion")

    @property
    def sender_id(self) -> Optional[str]:
        return self.attributes.get(SENDER_ID)

    @property
    def approximate_receive_count(self) -> int:
        """Number of times this message has been received, 1 when unknown, never negative."""
        try:
            return max(int(self.attributes.get(APPROXIMATE_RECEIVE_COUNT, 1)), 0)
        except (TypeError, ValueError):
            return 1


class QueueIdentity(BaseModel):
    """Addressable identity of the queue a message was delivered from."""

    model_config = ConfigDict(frozen=True)

    region: str
    owner_id: str
    queue_name: str

    @property
    def queue_url(self) -> str:
        return QUEUE_URL_TEMPLATE.format(
            region=self.region,
            owner_id=self.owner_id,
            queue_name=self.queue_name
        )


class MessageContext(BaseModel):
    """
    Everything needed to act on one delivery of a message.

    Built once per message by the resolver and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    identity: QueueIdentity
    receipt_handle: str
    message_id: Optional[str] = None
    approximate_receive_count: int = 1

    @property
    def queue_url(self) -> str:
        return self.identity.queue_url
