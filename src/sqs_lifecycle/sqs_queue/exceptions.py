"""
Module: exceptions.py
Description: Errors raised while resolving an inbound SQS message.
"""

from typing import Optional


class MalformedEnvelopeError(ValueError):
    """
    The message envelope does not identify a queue and a delivery handle.

    No visibility or delete call may be made for a message whose
    envelope failed to resolve.
    """

    def __init__(self, reason: str, message_id: Optional[str] = None):
        self.reason = reason
        self.message_id = message_id
        super().__init__(f"Malformed SQS message envelope: {reason}")
