"""
Module: coordinator.py
Description: Visibility backoff coordinator for a single in-flight SQS message.

Owns one boto3 SQS client for its lifetime and, for the message it is
bound to, extends the visibility timeout on a backoff schedule or deletes
the message once processing succeeded.

Key Components:
- VisibilityCoordinator: bind(), extend_visibility(), delete(), close()
- build_client_config(): botocore Config carrying the outbound proxy
- Remote failures reported as OperationResult, never raised

Dependencies: boto3, botocore, typing, logger
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import boto3
from botocore.config import Config

from sqs_lifecycle.config.settings import Settings, settings as default_settings
from sqs_lifecycle.constants import DEFAULT_ATTRIBUTES_TO_RETRIEVE
from sqs_lifecycle.models.envelope import MessageContext, SQSMessageEnvelope
from sqs_lifecycle.models.result import REMOTE_ERRORS, OperationResult
from sqs_lifecycle.sqs_queue.backoff import (
    BackoffRequest,
    compute_visibility_timeout,
    parse_visibility_timeout,
)
from sqs_lifecycle.sqs_queue.resolver import resolve_message_context
from sqs_lifecycle.utils.logger import get_logger
from sqs_lifecycle.utils.metrics import MetricsClient

logger = get_logger(__name__)

CHANGE_MESSAGE_VISIBILITY = "ChangeMessageVisibility"
DELETE_MESSAGE = "DeleteMessage"


def build_client_config(proxy_url: Optional[str]) -> Optional[Config]:
    """Return a botocore Config routing every call through proxy_url, if set."""
    if not proxy_url:
        return None
    return Config(proxies={'http': proxy_url, 'https': proxy_url})


def attributes_from_response(response: Mapping[str, Any], queue_url: str) -> Dict[str, str]:
    """
    Extract queue attributes from a GetQueueAttributes response.

    A non-200 status yields an empty mapping.
    """
    status_code = response.get('ResponseMetadata', {}).get('HTTPStatusCode', 200)
    if status_code != 200:
        logger.warning(
            "Queue attributes request returned non-OK status",
            queue_url=queue_url,
            status_code=status_code
        )
        return {}

    return dict(response.get('Attributes', {}))


def resolve_base_timeout(
    attributes: Mapping[str, str],
    context: MessageContext,
    metrics: Optional[MetricsClient] = None
) -> int:
    """
    Queue VisibilityTimeout from fetched attributes, 0 when unavailable.

    Unavailable values are logged as degraded so queue configuration
    problems stay visible even though the backoff proceeds.
    """
    base_timeout = parse_visibility_timeout(attributes)
    if base_timeout is not None:
        return base_timeout

    logger.warning(
        "Queue attribute fetch degraded, using base visibility timeout of 0",
        queue_url=context.queue_url,
        message_id=context.message_id,
        attributes=dict(attributes),
        degraded=True
    )
    if metrics is not None:
        metrics.put_metric(
            "AttributeFetchDegraded",
            dimensions={'QueueName': context.identity.queue_name}
        )
    return 0


class VisibilityCoordinator:
    """
    Blocking coordinator for the lifecycle of one delivered SQS message.

    Create one per message, bind it to the message's resolved context,
    then either extend its visibility after a transient failure or delete
    it after success. Not safe for concurrent use. Release the SQS client
    with close() or by using the coordinator as a context manager; any
    operation after close() raises RuntimeError.

    Attributes:
        settings: Settings in effect
        proxy_url: Outbound proxy applied to all SQS calls, if any
        visibility_timeout_increment: Default increment for extend_visibility
        sqs_attributes_to_retrieve: Queue attributes requested on each fetch
        client: boto3 SQS client owned by this coordinator

    Example:
        >>> with VisibilityCoordinator.for_message(record) as coordinator:
        ...     result = coordinator.extend_visibility(previous_deliveries=3)
        ...     result.success
        True
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        proxy_url: Optional[str] = None,
        metrics: Optional[MetricsClient] = None,
        client: Any = None
    ):
        """
        Initialize the coordinator and its SQS client.

        Args:
            settings: Settings to use, defaults to the global settings
            proxy_url: Proxy override, defaults to settings.web_proxy_url
            metrics: Optional CloudWatch metrics client
            client: Pre-built SQS client; the coordinator takes ownership
        """
        self.settings = settings or default_settings
        self.proxy_url = proxy_url or self.settings.web_proxy_url
        self.visibility_timeout_increment = self.settings.visibility_timeout_increment
        self.sqs_attributes_to_retrieve: List[str] = list(DEFAULT_ATTRIBUTES_TO_RETRIEVE)
        self.metrics = metrics

        if client is None:
            client = boto3.client(
                'sqs',
                region_name=self.settings.aws_region,
                config=build_client_config(self.proxy_url)
            )
        self.client = client

        self._context: Optional[MessageContext] = None
        self._closed = False

        logger.info(
            "SQS visibility coordinator initialized",
            region=self.settings.aws_region,
            proxy_configured=self.proxy_url is not None
        )

    @classmethod
    def for_message(
        cls,
        envelope: Union[SQSMessageEnvelope, Dict[str, Any]],
        **kwargs
    ) -> "VisibilityCoordinator":
        """
        Resolve envelope and return a coordinator bound to it.

        Resolution happens before the client is created, so a malformed
        envelope fails without touching the network.

        Raises:
            MalformedEnvelopeError: If the envelope cannot be resolved
        """
        context = resolve_message_context(envelope)
        coordinator = cls(**kwargs)
        coordinator.bind(context)
        return coordinator

    @property
    def context(self) -> MessageContext:
        if self._context is None:
            raise RuntimeError("Coordinator is not bound to a message")
        return self._context

    @property
    def closed(self) -> bool:
        return self._closed

    def bind(self, context: MessageContext) -> None:
        """
        Attach the resolved message context. Allowed exactly once.

        Raises:
            RuntimeError: If already bound or closed
        """
        self._require_open()
        if self._context is not None:
            raise RuntimeError("Coordinator is already bound to a message")
        if not isinstance(context, MessageContext):
            raise ValueError("context must be a MessageContext instance")

        self._context = context

    def get_attributes(self) -> Dict[str, str]:
        """
        Fetch the configured queue attributes.

        Returns:
            Attribute name to value mapping, empty when the request fails
        """
        self._require_open()
        queue_url = self.context.queue_url

        try:
            response = self.client.get_queue_attributes(
                QueueUrl=queue_url,
                AttributeNames=self.sqs_attributes_to_retrieve
            )
        except REMOTE_ERRORS as e:
            logger.warning(
                "Queue attributes request failed",
                queue_url=queue_url,
                error=str(e),
                error_type=type(e).__name__
            )
            return {}

        return attributes_from_response(response, queue_url)

    def extend_visibility(
        self,
        previous_deliveries: int,
        visibility_timeout_increment: Optional[int] = None,
        new_visibility_timeout: int = 0
    ) -> OperationResult:
        """
        Push out the message's visibility deadline.

        With a non-zero increment the new timeout is the queue's current
        VisibilityTimeout plus ``increment * (previous_deliveries - 1)``,
        fetched live on every call; otherwise it is new_visibility_timeout.
        The increment wins when both are given.

        Args:
            previous_deliveries: Times the message has been delivered
            visibility_timeout_increment: Seconds per previous delivery,
                None for the configured default
            new_visibility_timeout: Explicit timeout, used only when the
                increment is 0

        Returns:
            OperationResult of the ChangeMessageVisibility call
        """
        self._require_open()
        context = self.context

        if visibility_timeout_increment is None:
            visibility_timeout_increment = self.visibility_timeout_increment

        request = BackoffRequest(
            previous_deliveries=previous_deliveries,
            visibility_timeout_increment=visibility_timeout_increment,
            new_visibility_timeout=new_visibility_timeout
        )

        base_timeout = 0
        if request.needs_queue_attributes:
            base_timeout = resolve_base_timeout(self.get_attributes(), context, self.metrics)

        visibility_timeout = compute_visibility_timeout(request, base_timeout)

        try:
            response = self.client.change_message_visibility(
                QueueUrl=context.queue_url,
                ReceiptHandle=context.receipt_handle,
                VisibilityTimeout=visibility_timeout
            )
            result = OperationResult.from_response(CHANGE_MESSAGE_VISIBILITY, response)
        except REMOTE_ERRORS as e:
            result = OperationResult.from_error(CHANGE_MESSAGE_VISIBILITY, e)

        self._log_result(
            result,
            strategy=request.strategy.value,
            previous_deliveries=previous_deliveries,
            base_timeout=base_timeout,
            visibility_timeout=visibility_timeout
        )
        return result

    def delete(self) -> OperationResult:
        """
        Delete the message from its queue.

        Returns:
            OperationResult of the DeleteMessage call, as reported by SQS
        """
        self._require_open()
        context = self.context

        try:
            response = self.client.delete_message(
                QueueUrl=context.queue_url,
                ReceiptHandle=context.receipt_handle
            )
            result = OperationResult.from_response(DELETE_MESSAGE, response)
        except REMOTE_ERRORS as e:
            result = OperationResult.from_error(DELETE_MESSAGE, e)

        self._log_result(result)
        return result

    def close(self) -> None:
        """Release the SQS client. Safe to call more than once."""
        if self._closed:
            return

        self._closed = True
        self.client.close()

        logger.debug(
            "SQS visibility coordinator closed",
            message_id=self._context.message_id if self._context else None
        )

    def __enter__(self) -> "VisibilityCoordinator":
        self._require_open()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError("Coordinator has been closed")

    def _log_result(self, result: OperationResult, **fields) -> None:
        log_result(result, self.context, self.metrics, **fields)


def log_result(
    result: OperationResult,
    context: MessageContext,
    metrics: Optional[MetricsClient] = None,
    **fields
) -> None:
    """Log a remote operation outcome and count failures."""
    if result.success:
        logger.info(
            f"{result.operation} succeeded",
            queue_url=context.queue_url,
            message_id=context.message_id,
            status_code=result.status_code,
            **fields
        )
        return

    logger.warning(
        f"{result.operation} failed",
        queue_url=context.queue_url,
        message_id=context.message_id,
        status_code=result.status_code,
        error_code=result.error_code,
        error_message=result.error_message,
        **fields
    )
    if metrics is not None:
        metrics.put_metric(
            "VisibilityChangeFailed" if result.operation == CHANGE_MESSAGE_VISIBILITY else "DeleteFailed",
            dimensions={'QueueName': context.identity.queue_name}
        )
