"""L0 Data — catalog tables and constants (pure data, no logic)."""

from rtos_provision.core.services.provisioning.data.catalog import (  # noqa: F401
    DEPENDENCY_CATALOG,
    INSTALLERS,
    PACKAGE_NAMES,
    TERMINALS,
    CatalogEntry,
    CommandProbe,
    PackageProbe,
    ShellProbe,
)
