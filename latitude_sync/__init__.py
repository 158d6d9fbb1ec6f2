"""latitude-sync: validate, diff and deploy PromptL prompts to a Latitude project."""

from latitude_sync.api import LatitudeClient, LatitudeError, create_client
from latitude_sync.deploy import DeployOrchestrator, DeployResult
from latitude_sync.diff import Document, DocumentChange, diff
from latitude_sync.validation import PromptValidator

__version__ = "0.1.0"

__all__ = [
    "DeployOrchestrator",
    "DeployResult",
    "Document",
    "DocumentChange",
    "LatitudeClient",
    "LatitudeError",
    "PromptValidator",
    "create_client",
    "diff",
]
