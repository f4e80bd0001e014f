"""
rtos-provision — development environment provisioning for Zephyr RTOS.

Drives the external tools (venv, pip, west, OS package managers) that
set up a Zephyr workspace, streaming their output live to the caller.
"""

__version__ = "0.1.0"
