"""L4 Orchestration — pipeline driver and the top-level workflows."""

from rtos_provision.core.services.provisioning.orchestration.install import (  # noqa: F401
    ProvisionOptions,
    build_provision_steps,
    provision,
    workspace_venv,
    workspace_zephyr_base,
)
from rtos_provision.core.services.provisioning.orchestration.pipeline import (  # noqa: F401
    PipelineContext,
    PipelineError,
    PipelineRun,
    PipelineStep,
    RunState,
    run_pipeline,
)
from rtos_provision.core.services.provisioning.orchestration.project import (  # noqa: F401
    create_project,
    delete_project_directory,
    run_meta_tool,
)
from rtos_provision.core.services.provisioning.orchestration.system_packages import (  # noqa: F401
    InstallPlan,
    install_dependencies,
    plan_install,
)
