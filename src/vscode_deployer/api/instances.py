"""Instance API endpoints."""

from fastapi import APIRouter, Depends

from vscode_deployer.api.dependencies import get_provisioner
from vscode_deployer.models import DeploymentResult, InstanceSpec
from vscode_deployer.provisioner import Provisioner

router = APIRouter(prefix="/instances", tags=["instances"])


@router.post("", status_code=201, response_model=DeploymentResult)
async def create_instance(
    spec: InstanceSpec,
    provisioner: Provisioner = Depends(get_provisioner),
) -> DeploymentResult:
    """Deploy a new code-server instance.

    Failures are raised as DeployerError and rendered by the app's error
    handler, including suggested_port details for port conflicts.
    """
    return await provisioner.create(spec)
