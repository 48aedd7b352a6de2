"""
Module: test_resolver.py
Description: Unit tests for SQS message context resolution.

Covers queue URL construction from the envelope, ARN parsing and the
malformed envelope cases that must fail before any SQS call.
"""

import pytest
from unittest.mock import patch
from pydantic import ValidationError

from conftest import ACCOUNT_ID, make_record
from sqs_lifecycle.models.envelope import MessageContext, SQSMessageEnvelope
from sqs_lifecycle.sqs_queue.coordinator import VisibilityCoordinator
from sqs_lifecycle.sqs_queue.exceptions import MalformedEnvelopeError
from sqs_lifecycle.sqs_queue.resolver import parse_arn, resolve_message_context


class TestParseArn:
    """Test cases for ARN parsing."""

    def test_parse_sqs_arn(self):
        arn = parse_arn("arn:aws:sqs:eu-west-1:111122223333:payments")

        assert arn.partition == "aws"
        assert arn.service == "sqs"
        assert arn.region == "eu-west-1"
        assert arn.account == "111122223333"
        assert arn.resource == "payments"

    def test_resource_keeps_colons(self):
        arn = parse_arn("arn:aws:sqs:us-east-1:111122223333:queue:with:colons")
        assert arn.resource == "queue:with:colons"

    @pytest.mark.parametrize("value", [
        None,
        "",
        "not-an-arn",
        "arn:aws:sqs:us-east-1:payments",
        "urn:aws:sqs:us-east-1:111122223333:payments",
        "arn:aws:sqs:us-east-1::payments",
        "arn:aws:sqs::111122223333:payments",
        "arn:aws:sqs:us-east-1:111122223333:",
    ])
    def test_invalid_arn(self, value):
        with pytest.raises(MalformedEnvelopeError):
            parse_arn(value)


class TestResolveMessageContext:
    """Test cases for resolve_message_context."""

    def test_resolve_raw_record(self, sample_record):
        context = resolve_message_context(sample_record)

        assert isinstance(context, MessageContext)
        assert context.identity.region == "us-east-1"
        assert context.identity.owner_id == ACCOUNT_ID
        assert context.identity.queue_name == "orders-queue"
        assert context.receipt_handle == sample_record["receiptHandle"]
        assert context.message_id == sample_record["messageId"]
        assert context.queue_url == "https://sqs.us-east-1.amazonaws.com/123456789012/orders-queue"

    def test_resolve_envelope_model(self, sample_record):
        envelope = SQSMessageEnvelope.model_validate(sample_record)
        assert resolve_message_context(envelope) == resolve_message_context(sample_record)

    @pytest.mark.parametrize("region,sender_id,queue_name", [
        ("ap-southeast-2", "999988887777", "Orders-Queue"),
        ("eu-central-1", "000000000001", "a"),
        ("us-west-2", "AIDAIENQZJOLO23YVJ4VO", "q" * 80),
        ("us-east-1", ACCOUNT_ID, "orders.fifo"),
    ])
    def test_queue_url_uses_envelope_fields_verbatim(self, region, sender_id, queue_name):
        record = make_record(
            sender_id=sender_id,
            aws_region=region,
            event_source_arn=f"arn:aws:sqs:{region}:{ACCOUNT_ID}:{queue_name}",
        )

        context = resolve_message_context(record)

        assert context.queue_url == f"https://sqs.{region}.amazonaws.com/{sender_id}/{queue_name}"

    def test_owner_comes_from_sender_id_not_arn_account(self):
        record = make_record(
            sender_id="444455556666",
            event_source_arn="arn:aws:sqs:us-east-1:111122223333:orders-queue",
        )

        context = resolve_message_context(record)

        assert context.identity.owner_id == "444455556666"

    def test_approximate_receive_count(self):
        assert resolve_message_context(make_record(receive_count="4")).approximate_receive_count == 4
        assert resolve_message_context(make_record(receive_count="abc")).approximate_receive_count == 1
        assert resolve_message_context(make_record(receive_count=None)).approximate_receive_count == 1

    def test_negative_receive_count_clamped_to_zero(self):
        assert resolve_message_context(make_record(receive_count="-1")).approximate_receive_count == 0

    def test_context_is_immutable(self, sample_record):
        context = resolve_message_context(sample_record)

        with pytest.raises(ValidationError):
            context.receipt_handle = "other"

    @pytest.mark.parametrize("overrides,reason", [
        ({"sender_id": None}, "SenderId"),
        ({"receipt_handle": None}, "receiptHandle"),
        ({"aws_region": None}, "awsRegion"),
        ({"event_source_arn": None}, "eventSourceARN"),
        ({"event_source_arn": "arn:aws:sqs:us-east-1::orders-queue"}, "account"),
    ])
    def test_malformed_envelope(self, overrides, reason):
        record = make_record(**overrides)

        with pytest.raises(MalformedEnvelopeError, match=reason) as exc_info:
            resolve_message_context(record)

        assert exc_info.value.message_id == record["messageId"]

    def test_invalid_record_types(self):
        record = make_record()
        record["attributes"] = "not a mapping"

        with pytest.raises(MalformedEnvelopeError):
            resolve_message_context(record)

    def test_malformed_envelope_fails_before_client_creation(self, test_settings):
        record = make_record(event_source_arn="arn:aws:sqs:us-east-1::orders-queue")

        with patch("sqs_lifecycle.sqs_queue.coordinator.boto3.client") as mock_client:
            with pytest.raises(MalformedEnvelopeError):
                VisibilityCoordinator.for_message(record, settings=test_settings)

        mock_client.assert_not_called()
