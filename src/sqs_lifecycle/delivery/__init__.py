"""
Package: delivery
Description: SQS batch processing for Lambda consumers.

Wires the message context resolver and the visibility coordinator
into a per-record success/failure loop.
"""

from .worker import handle_batch

__all__ = ["handle_batch"]
