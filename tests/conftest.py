"""
Module: conftest.py
Description: Shared pytest fixtures for SQS lifecycle tests.

Provides settings, Lambda SQS records and a moto-backed SQS queue
holding one received message, so coordinator tests run against a
realistic receipt handle without touching AWS.
"""

import pytest
import boto3
from moto import mock_aws

from sqs_lifecycle.config.settings import Settings
from sqs_lifecycle.sqs_queue.coordinator import VisibilityCoordinator

ACCOUNT_ID = "123456789012"
REGION = "us-east-1"
QUEUE_NAME = "orders-queue"
QUEUE_ARN = f"arn:aws:sqs:{REGION}:{ACCOUNT_ID}:{QUEUE_NAME}"


def make_record(
    message_id="059f36b4-87a3-44ab-83d2-661975830a7d",
    receipt_handle="AQEBwJnKyrHigUMZj6rYigCgxlaS3SLy0a",
    body='{"order_id": "12345"}',
    receive_count="1",
    sender_id=ACCOUNT_ID,
    event_source_arn=QUEUE_ARN,
    aws_region=REGION,
):
    """Build a Lambda SQS event record; pass None to drop a field."""
    attributes = {
        "ApproximateReceiveCount": receive_count,
        "SentTimestamp": "1545082649183",
        "SenderId": sender_id,
        "ApproximateFirstReceiveTimestamp": "1545082649185",
    }
    record = {
        "messageId": message_id,
        "receiptHandle": receipt_handle,
        "body": body,
        "attributes": {k: v for k, v in attributes.items() if v is not None},
        "messageAttributes": {},
        "md5OfBody": "e4e68fb7bd0e697a0ae8f1bb342846b3",
        "eventSource": "aws:sqs",
        "eventSourceARN": event_source_arn,
        "awsRegion": aws_region,
    }
    return {k: v for k, v in record.items() if v is not None}


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so no test can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def test_settings():
    """
    Provide test configuration settings.

    Disables .env loading for predictable tests.
    """
    return Settings(
        _env_file=None,
        aws_region=REGION,
        log_level="DEBUG",
        web_proxy_url=None,
        visibility_timeout_increment=5,
        metrics_enabled=False,
    )


@pytest.fixture
def sample_record():
    """Lambda SQS record for a message on orders-queue."""
    return make_record()


@pytest.fixture
def mocked_aws():
    """Run the test inside moto's AWS mock."""
    with mock_aws():
        yield


@pytest.fixture
def sqs_client(mocked_aws):
    return boto3.client("sqs", region_name=REGION)


@pytest.fixture
def queue_url(sqs_client):
    """Create orders-queue with a 30 second default visibility timeout."""
    response = sqs_client.create_queue(
        QueueName=QUEUE_NAME,
        Attributes={"VisibilityTimeout": "30"}
    )
    return response["QueueUrl"]


@pytest.fixture
def received_message(sqs_client, queue_url):
    """Send one message to orders-queue and receive it."""
    sqs_client.send_message(QueueUrl=queue_url, MessageBody='{"order_id": "12345"}')
    response = sqs_client.receive_message(
        QueueUrl=queue_url,
        MaxNumberOfMessages=1,
        AttributeNames=["All"]
    )
    return response["Messages"][0]


@pytest.fixture
def sqs_record(received_message):
    """Lambda record for the message received from the mocked queue."""
    return make_record(
        message_id=received_message["MessageId"],
        receipt_handle=received_message["ReceiptHandle"],
        body=received_message["Body"],
    )


@pytest.fixture
def coordinator(test_settings, sqs_record):
    """VisibilityCoordinator bound to the received message."""
    coordinator = VisibilityCoordinator.for_message(sqs_record, settings=test_settings)
    yield coordinator
    coordinator.close()


def queue_counts(sqs_client, queue_url):
    """Return (visible, in-flight) message counts for queue_url."""
    attributes = sqs_client.get_queue_attributes(
        QueueUrl=queue_url,
        AttributeNames=["ApproximateNumberOfMessages", "ApproximateNumberOfMessagesNotVisible"]
    )["Attributes"]
    return (
        int(attributes["ApproximateNumberOfMessages"]),
        int(attributes["ApproximateNumberOfMessagesNotVisible"]),
    )
