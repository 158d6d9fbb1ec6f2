"""Deploy pipeline and publish-failure localization."""

from latitude_sync.deploy.localizer import FailureLocalizer, Probe, RemoteProbe
from latitude_sync.deploy.models import DeployPlan, DeployResult, FailedDocument, ProbeOutcome
from latitude_sync.deploy.orchestrator import DeployOrchestrator, build_failure_error

__all__ = [
    "DeployOrchestrator",
    "DeployPlan",
    "DeployResult",
    "FailedDocument",
    "FailureLocalizer",
    "Probe",
    "ProbeOutcome",
    "RemoteProbe",
    "build_failure_error",
]
