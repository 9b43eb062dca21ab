"""
Submission sinks.

Every sink subclasses ``Sink`` and settles each delivery into a
``SinkResult``. The dispatcher fans a record out to all configured sinks;
adding a channel means adding a subclass, nothing else.
"""

from .base import Sink, SinkResult
from .email import EmailSink
from .webhook import WebhookSink

__all__ = [
    "Sink",
    "SinkResult",
    "EmailSink",
    "WebhookSink",
]
