"""
Module: result.py
Description: Outcome of a remote SQS operation.

Remote failures are reported through OperationResult instead of being
raised, so callers decide their own retry policy.
"""

from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field


class OperationResult(BaseModel):
    """
    Success/failure result of a visibility change or delete call.

    Attributes:
        operation: SQS operation name (ChangeMessageVisibility, DeleteMessage)
        success: True when the queue service accepted the call
        status_code: HTTP status reported by the service, when known
        request_id: AWS request id, when known
        error_code: Service or client error code on failure
        error_message: Human readable error on failure
    """

    operation: str = Field(..., description="SQS operation name")
    success: bool = Field(..., description="Whether the remote call succeeded")
    status_code: Optional[int] = Field(default=None)
    request_id: Optional[str] = Field(default=None)
    error_code: Optional[str] = Field(default=None)
    error_message: Optional[str] = Field(default=None)

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def from_response(cls, operation: str, response: Dict[str, Any]) -> "OperationResult":
        """Build a result from a boto3 response dictionary."""
        metadata = response.get('ResponseMetadata', {})
        status_code = metadata.get('HTTPStatusCode')

        return cls(
            operation=operation,
            success=status_code is None or 200 <= status_code < 300,
            status_code=status_code,
            request_id=metadata.get('RequestId')
        )

    @classmethod
    def from_error(cls, operation: str, error: Exception) -> "OperationResult":
        """Build a failed result from a botocore exception."""
        if isinstance(error, ClientError):
            error_info = error.response.get('Error', {})
            metadata = error.response.get('ResponseMetadata', {})
            return cls(
                operation=operation,
                success=False,
                status_code=metadata.get('HTTPStatusCode'),
                request_id=metadata.get('RequestId'),
                error_code=error_info.get('Code'),
                error_message=error_info.get('Message')
            )

        return cls(
            operation=operation,
            success=False,
            error_code=type(error).__name__,
            error_message=str(error)
        )


# Exceptions converted into failed OperationResults
REMOTE_ERRORS = (ClientError, BotoCoreError)
