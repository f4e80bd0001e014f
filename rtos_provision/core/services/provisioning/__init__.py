"""
Provisioning service — package re-exports.

Layers, leaf first (each imports only from the layers above it)::

    data → platform_info → execution → detection → orchestration

    from rtos_provision.core.services.provisioning import provision
"""

# ── L0: Data ──
from rtos_provision.core.services.provisioning.data.catalog import (  # noqa: F401
    DEPENDENCY_CATALOG,
    PACKAGE_NAMES,
)

# ── L1: Platform ──
from rtos_provision.core.services.provisioning.platform_info import (  # noqa: F401
    PlatformInfo,
    detect_platform,
    os_family,
)

# ── L2: Execution ──
from rtos_provision.core.services.provisioning.execution.overlay import (  # noqa: F401
    EnvOverlay,
    activation_overlay,
)
from rtos_provision.core.services.provisioning.execution.process_runner import (  # noqa: F401
    run_capture,
    run_process,
)
from rtos_provision.core.services.provisioning.execution.sink import (  # noqa: F401
    CallbackSink,
    CollectingSink,
    ConsoleSink,
    LoggingSink,
    LogSink,
    TeeSink,
)

# ── L3: Detection ──
from rtos_provision.core.services.provisioning.detection.dependencies import (  # noqa: F401
    check_dependencies,
    check_environment,
)

# ── L4: Orchestration ──
from rtos_provision.core.services.provisioning.orchestration.install import (  # noqa: F401
    ProvisionOptions,
    provision,
)
from rtos_provision.core.services.provisioning.orchestration.pipeline import (  # noqa: F401
    PipelineError,
    PipelineRun,
)
from rtos_provision.core.services.provisioning.orchestration.project import (  # noqa: F401
    create_project,
    delete_project_directory,
    run_meta_tool,
)
from rtos_provision.core.services.provisioning.orchestration.system_packages import (  # noqa: F401
    install_dependencies,
)
