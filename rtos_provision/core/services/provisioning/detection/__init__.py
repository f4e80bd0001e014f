"""L3 Detection — dependency inventory and readiness checks."""

from rtos_provision.core.services.provisioning.detection.dependencies import (  # noqa: F401
    check_dependencies,
    check_environment,
    probe_entry,
)
