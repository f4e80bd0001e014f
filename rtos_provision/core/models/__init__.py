"""
Domain models — pydantic types and dataclasses for provisioning.

    from rtos_provision.core.models import ProcessSpec, StepResult, EnvReport
"""

from rtos_provision.core.models.environment import Dependency, EnvReport, EnvStatus
from rtos_provision.core.models.process import LogEvent, ProcessSpec, StepResult, StreamKind
from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.models.user_config import MAX_HISTORY, ProjectRecord, UserConfig

__all__ = [
    # environment.py
    "Dependency",
    "EnvReport",
    "EnvStatus",
    # process.py
    "LogEvent",
    "ProcessSpec",
    "StepResult",
    "StreamKind",
    # settings.py
    "ProvisionSettings",
    # user_config.py
    "MAX_HISTORY",
    "ProjectRecord",
    "UserConfig",
]
