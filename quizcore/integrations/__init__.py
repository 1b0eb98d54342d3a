"""HTTP clients for collaborator services."""

from .base import ServiceClient, ServiceUnavailableError
from .completion_client import HttpCompletionLookup
from .transcriber import HttpAudioTranscriber

__all__ = [
    "HttpAudioTranscriber",
    "HttpCompletionLookup",
    "ServiceClient",
    "ServiceUnavailableError",
]
