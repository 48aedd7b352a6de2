"""
Module: delivery/worker.py
Description: SQS batch processing with visibility backoff.

Runs a processor over each record of an SQS-triggered Lambda event.
Successful records are deleted; failed records get their visibility
extended by the backoff policy and are reported back as batch item
failures so they return to the queue later.
"""

from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from sqs_lifecycle.config.settings import Settings, settings as default_settings
from sqs_lifecycle.models.envelope import MessageContext, SQSMessageEnvelope
from sqs_lifecycle.sqs_queue.coordinator import VisibilityCoordinator
from sqs_lifecycle.sqs_queue.exceptions import MalformedEnvelopeError
from sqs_lifecycle.sqs_queue.resolver import resolve_message_context
from sqs_lifecycle.utils.logger import get_logger
from sqs_lifecycle.utils.metrics import MetricsClient

logger = get_logger(__name__)

Processor = Callable[[SQSMessageEnvelope], bool]
CoordinatorFactory = Callable[[MessageContext], VisibilityCoordinator]


def handle_batch(
    event: Dict[str, Any],
    processor: Processor,
    settings: Optional[Settings] = None,
    coordinator_factory: Optional[CoordinatorFactory] = None
) -> Dict[str, Any]:
    """
    Process an SQS Lambda event record by record.

    Args:
        event: SQS event with batch of messages
        processor: Called with each envelope, returns True on success
        settings: Settings to use, defaults to the global settings
        coordinator_factory: Builds a bound coordinator for a context

    Returns:
        Response with batch item failures (if any)
    """
    settings = settings or default_settings

    metrics = None
    if settings.metrics_enabled:
        metrics = MetricsClient(
            namespace=settings.metrics_namespace,
            region_name=settings.aws_region,
            proxy_url=settings.web_proxy_url
        )

    def default_factory(context: MessageContext) -> VisibilityCoordinator:
        coordinator = VisibilityCoordinator(settings=settings, metrics=metrics)
        coordinator.bind(context)
        return coordinator

    factory = coordinator_factory or default_factory

    batch_failures: List[Dict[str, str]] = []

    try:
        for record in event.get('Records', []):
            if not _process_record(record, processor, factory):
                batch_failures.append({
                    'itemIdentifier': record.get('messageId')
                })
    finally:
        if metrics is not None:
            metrics.close()

    logger.info(
        "SQS batch processed",
        record_count=len(event.get('Records', [])),
        failure_count=len(batch_failures)
    )

    return {'batchItemFailures': batch_failures}


def _process_record(
    record: Dict[str, Any],
    processor: Processor,
    coordinator_factory: CoordinatorFactory
) -> bool:
    """Handle one record. Returns True when it may leave the queue."""
    try:
        envelope = SQSMessageEnvelope.model_validate(record)
        context = resolve_message_context(envelope)
    except (MalformedEnvelopeError, ValidationError) as e:
        logger.error(
            "Skipping unresolvable SQS message",
            message_id=record.get('messageId'),
            error=str(e)
        )
        return False

    with coordinator_factory(context) as coordinator:
        try:
            success = bool(processor(envelope))
        except Exception as e:
            logger.error(
                "Error processing SQS message",
                message_id=context.message_id,
                error=str(e),
                error_type=type(e).__name__
            )
            success = False

        if success:
            coordinator.delete()
            return True

        result = coordinator.extend_visibility(context.approximate_receive_count)
        logger.warning(
            "SQS message processing failed, will retry",
            message_id=context.message_id,
            attempts=context.approximate_receive_count,
            visibility_extended=result.success
        )
        return False
