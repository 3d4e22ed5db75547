"""Remote code signing: object store, signing service, state machine, client."""

from .client import RemoteSigningClient
from .machine import SigningJob, SigningState, advance, new_job
from .service import LambdaSigningService, SigningReply, SigningService
from .store import MemoryObjectStore, ObjectStore, S3ObjectStore

__all__ = [
    "RemoteSigningClient",
    "SigningJob",
    "SigningState",
    "advance",
    "new_job",
    "LambdaSigningService",
    "SigningReply",
    "SigningService",
    "MemoryObjectStore",
    "ObjectStore",
    "S3ObjectStore",
]
