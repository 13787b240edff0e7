"""Container operations: call arguments, staging, copiers and state machine."""

from efmucontainer.container.config import REQUIRED_ARGUMENTS, ContainerOperation, CoreCallArguments
from efmucontainer.container.container import Container, ContainerState, run_operation
from efmucontainer.container.copiers import ModelRepresentationCopier, SchemaCopier
from efmucontainer.container.staging import StagedTree

__all__ = [
    "REQUIRED_ARGUMENTS",
    "Container",
    "ContainerOperation",
    "ContainerState",
    "CoreCallArguments",
    "ModelRepresentationCopier",
    "SchemaCopier",
    "StagedTree",
    "run_operation",
]
