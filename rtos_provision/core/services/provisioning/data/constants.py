"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Bytes requested per pipe read; readers get whatever is available.
READ_CHUNK = 64 * 1024

# Lines of combined output kept on a StepResult for failure reports.
TAIL_LINES = 20

# Windows: suppress the console window of unattended child processes.
CREATE_NO_WINDOW = 0x08000000

# Upper bound on concurrent dependency probes.
MAX_PROBE_WORKERS = 8

# Package databases a PackageProbe can query, in preference order.
PACKAGE_DATABASES: tuple[str, ...] = ("dpkg", "rpm")

# Executable subdirectory and interpreter name inside a venv, per OS family.
VENV_BIN_DIR: dict[str, str] = {"windows": "Scripts"}
VENV_BIN_DIR_DEFAULT = "bin"

# Path list separator, per OS family.
PATH_SEPARATOR: dict[str, str] = {"windows": ";"}
PATH_SEPARATOR_DEFAULT = ":"

# Blob filter used for shallow clones during provisioning.
BLOB_FILTER = "--filter=blob:none"
