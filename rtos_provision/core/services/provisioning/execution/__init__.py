"""L2 Execution — sinks, line assembly, env overlay, process runner."""

from rtos_provision.core.services.provisioning.execution.overlay import (  # noqa: F401
    EnvOverlay,
    activation_overlay,
    venv_activation_script,
    venv_bin_dir,
    venv_executable,
    venv_interpreter,
)
from rtos_provision.core.services.provisioning.execution.process_runner import (  # noqa: F401
    Runner,
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
