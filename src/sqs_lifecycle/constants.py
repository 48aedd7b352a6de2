"""
Module: constants.py
Description: SQS attribute names and address template shared across modules.
"""

# Queue attribute holding the queue's default visibility timeout (seconds)
VISIBILITY_TIMEOUT = "VisibilityTimeout"

# Message system attributes
SENDER_ID = "SenderId"
APPROXIMATE_RECEIVE_COUNT = "ApproximateReceiveCount"

# The queue service resolves queue addresses in exactly this form
QUEUE_URL_TEMPLATE = "https://sqs.{region}.amazonaws.com/{owner_id}/{queue_name}"

DEFAULT_ATTRIBUTES_TO_RETRIEVE = (VISIBILITY_TIMEOUT,)
