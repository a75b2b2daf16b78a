"""Task runtime services."""

from etl_base.services.alerts import AlertDispatcher
from etl_base.services.gateway import ConfigurationGateway
from etl_base.services.submission import Chunk, SubmissionEncoder, SubmissionResult

__all__ = [
    "AlertDispatcher",
    "Chunk",
    "ConfigurationGateway",
    "SubmissionEncoder",
    "SubmissionResult",
]
