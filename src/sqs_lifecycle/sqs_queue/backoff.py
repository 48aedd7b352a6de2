"""
Module: backoff.py
Description: Visibility timeout backoff policy.

Decides how far to push out a message's visibility deadline given how
many times it has already been delivered. Two policies exist:

- USE_INCREMENT: queue's current VisibilityTimeout plus
  ``increment * (previous_deliveries - 1)`` seconds
- USE_OVERRIDE: the caller supplied timeout, verbatim

The increment policy takes priority whenever the increment is non-zero,
so a caller who wants a pure override must pass an increment of 0.

Dependencies: pydantic, enum, typing
"""

from enum import Enum
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from sqs_lifecycle.constants import VISIBILITY_TIMEOUT


class BackoffStrategy(str, Enum):
    """Which policy produces the new visibility timeout."""

    USE_OVERRIDE = "use_override"
    USE_INCREMENT = "use_increment"


class BackoffRequest(BaseModel):
    """
    Inputs of one visibility extension.

    Attributes:
        previous_deliveries: Times the message has been delivered so far
        visibility_timeout_increment: Seconds added per previous delivery
        new_visibility_timeout: Explicit timeout, 0 meaning unset
    """

    model_config = ConfigDict(frozen=True)

    previous_deliveries: int = Field(..., ge=0)
    visibility_timeout_increment: int = Field(..., ge=0)
    new_visibility_timeout: int = Field(default=0, ge=0)

    @property
    def strategy(self) -> BackoffStrategy:
        if self.visibility_timeout_increment != 0:
            return BackoffStrategy.USE_INCREMENT
        return BackoffStrategy.USE_OVERRIDE

    @property
    def needs_queue_attributes(self) -> bool:
        return self.strategy is BackoffStrategy.USE_INCREMENT


def parse_visibility_timeout(attributes: Mapping[str, str]) -> Optional[int]:
    """
    Read the queue's VisibilityTimeout attribute as an integer.

    Returns:
        The timeout in seconds, or None when absent or not an integer
    """
    value = attributes.get(VISIBILITY_TIMEOUT)
    if value is None:
        return None

    try:
        return int(str(value).strip())
    except ValueError:
        return None


def compute_visibility_timeout(request: BackoffRequest, base_timeout: int = 0) -> int:
    """
    Compute the new visibility timeout for a backoff request.

    The result is not clamped; previous_deliveries of 0 with a non-zero
    increment yields a value below the base timeout, possibly negative,
    which the queue service rejects.

    Args:
        request: Backoff inputs
        base_timeout: Queue's current VisibilityTimeout, used by USE_INCREMENT

    Returns:
        New visibility timeout in seconds
    """
    if request.strategy is BackoffStrategy.USE_INCREMENT:
        return base_timeout + request.visibility_timeout_increment * (request.previous_deliveries - 1)

    return request.new_visibility_timeout
