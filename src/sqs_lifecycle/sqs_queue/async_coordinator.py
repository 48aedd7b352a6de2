"""
Module: async_coordinator.py
Description: asyncio variant of the visibility backoff coordinator.

Same operations and semantics as VisibilityCoordinator, backed by an
aioboto3 SQS client that is opened on ``async with`` entry and closed
on exit, including when the body raises.

Dependencies: aioboto3, botocore, contextlib, typing, logger
"""

from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional, Union

from aioboto3 import Session

from sqs_lifecycle.config.settings import Settings, settings as default_settings
from sqs_lifecycle.constants import DEFAULT_ATTRIBUTES_TO_RETRIEVE
from sqs_lifecycle.models.envelope import MessageContext, SQSMessageEnvelope
from sqs_lifecycle.models.result import REMOTE_ERRORS, OperationResult
from sqs_lifecycle.sqs_queue.backoff import BackoffRequest, compute_visibility_timeout
from sqs_lifecycle.sqs_queue.coordinator import (
    CHANGE_MESSAGE_VISIBILITY,
    DELETE_MESSAGE,
    attributes_from_response,
    build_client_config,
    log_result,
    resolve_base_timeout,
)
from sqs_lifecycle.sqs_queue.resolver import resolve_message_context
from sqs_lifecycle.utils.logger import get_logger
from sqs_lifecycle.utils.metrics import MetricsClient

logger = get_logger(__name__)


class AsyncVisibilityCoordinator:
    """
    Async coordinator for the lifecycle of one delivered SQS message.

    Example:
        >>> async with AsyncVisibilityCoordinator.for_message(record) as coordinator:
        ...     await coordinator.delete()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        proxy_url: Optional[str] = None,
        metrics: Optional[MetricsClient] = None,
        session: Optional[Session] = None,
        client: Any = None
    ):
        """
        Initialize the coordinator. The SQS client is opened by ``async with``.

        Args:
            settings: Settings to use, defaults to the global settings
            proxy_url: Proxy override, defaults to settings.web_proxy_url
            metrics: Optional CloudWatch metrics client
            session: aioboto3 Session to create the client from
            client: Pre-built async SQS client; the coordinator takes ownership
        """
        self.settings = settings or default_settings
        self.proxy_url = proxy_url or self.settings.web_proxy_url
        self.visibility_timeout_increment = self.settings.visibility_timeout_increment
        self.sqs_attributes_to_retrieve: List[str] = list(DEFAULT_ATTRIBUTES_TO_RETRIEVE)
        self.metrics = metrics
        self.session = session
        self.client = client

        self._context: Optional[MessageContext] = None
        self._exit_stack: Optional[AsyncExitStack] = None
        self._closed = False

    @classmethod
    def for_message(
        cls,
        envelope: Union[SQSMessageEnvelope, Dict[str, Any]],
        **kwargs
    ) -> "AsyncVisibilityCoordinator":
        """
        Resolve envelope and return an unopened coordinator bound to it.

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
        """Attach the resolved message context. Allowed exactly once."""
        self._require_open()
        if self._context is not None:
            raise RuntimeError("Coordinator is already bound to a message")
        if not isinstance(context, MessageContext):
            raise ValueError("context must be a MessageContext instance")

        self._context = context

    async def open(self) -> "AsyncVisibilityCoordinator":
        """Open the SQS client. Called by ``async with``."""
        self._require_open()
        if self._exit_stack is not None:
            return self

        self._exit_stack = AsyncExitStack()
        if self.client is None:
            if self.session is None:
                self.session = Session()
            self.client = await self._exit_stack.enter_async_context(
                self.session.client(
                    'sqs',
                    region_name=self.settings.aws_region,
                    config=build_client_config(self.proxy_url)
                )
            )
        else:
            self._exit_stack.push_async_callback(self.client.close)

        logger.info(
            "Async SQS visibility coordinator opened",
            region=self.settings.aws_region,
            proxy_configured=self.proxy_url is not None
        )
        return self

    async def close(self) -> None:
        """Release the SQS client. Safe to call more than once."""
        if self._closed:
            return

        self._closed = True
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
        elif self.client is not None:
            # Injected client that was never opened
            await self.client.close()

        logger.debug(
            "Async SQS visibility coordinator closed",
            message_id=self._context.message_id if self._context else None
        )

    async def __aenter__(self) -> "AsyncVisibilityCoordinator":
        return await self.open()

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()

    async def get_attributes(self) -> Dict[str, str]:
        """Fetch the configured queue attributes, empty when the request fails."""
        self._require_active()
        queue_url = self.context.queue_url

        try:
            response = await self.client.get_queue_attributes(
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

    async def extend_visibility(
        self,
        previous_deliveries: int,
        visibility_timeout_increment: Optional[int] = None,
        new_visibility_timeout: int = 0
    ) -> OperationResult:
        """See VisibilityCoordinator.extend_visibility."""
        self._require_active()
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
            base_timeout = resolve_base_timeout(await self.get_attributes(), context, self.metrics)

        visibility_timeout = compute_visibility_timeout(request, base_timeout)

        try:
            response = await self.client.change_message_visibility(
                QueueUrl=context.queue_url,
                ReceiptHandle=context.receipt_handle,
                VisibilityTimeout=visibility_timeout
            )
            result = OperationResult.from_response(CHANGE_MESSAGE_VISIBILITY, response)
        except REMOTE_ERRORS as e:
            result = OperationResult.from_error(CHANGE_MESSAGE_VISIBILITY, e)

        log_result(
            result,
            context,
            self.metrics,
            strategy=request.strategy.value,
            previous_deliveries=previous_deliveries,
            base_timeout=base_timeout,
            visibility_timeout=visibility_timeout
        )
        return result

    async def delete(self) -> OperationResult:
        """Delete the message from its queue."""
        self._require_active()
        context = self.context

        try:
            response = await self.client.delete_message(
                QueueUrl=context.queue_url,
                ReceiptHandle=context.receipt_handle
            )
            result = OperationResult.from_response(DELETE_MESSAGE, response)
        except REMOTE_ERRORS as e:
            result = OperationResult.from_error(DELETE_MESSAGE, e)

        log_result(result, context, self.metrics)
        return result

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError("Coordinator has been closed")

    def _require_active(self) -> None:
        self._require_open()
        if self._exit_stack is None:
            raise RuntimeError("Coordinator is not open, use 'async with'")
