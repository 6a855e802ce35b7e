"""archsign - batch JAR signing and verification around the JDK jarsigner.

Submodules:
    matcher     - which archives a run processes (explicit, project, scan)
    invoker     - one jarsigner run per archive, with password redaction
    dispatcher  - sequential or round-robin partitioned execution
    controller  - skip / toolchain / input precedence for a whole run
    cli         - ``archsign sign``, ``archsign verify``, ``archsign encrypt-password``

Public API:
    from archsign import load_config, create_controller

    config = load_config(overrides={"archive_directory": "dist", "threads": 4})
    summary = create_controller(config, "sign").run()
"""
from __future__ import annotations

__version__ = "0.1.0"

from archsign.config import SignerConfig, load_config
from archsign.controller import RunController, create_controller
from archsign.dispatcher import AttemptCounter, PartitionedDispatcher
from archsign.errors import (
    ArchsignError,
    ConfigurationError,
    InvocationError,
    NonzeroExitError,
    PreProcessError,
    SigningFailure,
    TaskFailure,
)
from archsign.invoker import SignOperation, SigningInvoker, VerifyOperation
from archsign.models import (
    ArchiveTask,
    FilterCriteria,
    InputMode,
    RunStatus,
    RunSummary,
    SigningOutcome,
)


__all__ = [
    "__version__",
    # Configuration
    "SignerConfig",
    "load_config",
    # Run
    "RunController",
    "create_controller",
    "SignOperation",
    "VerifyOperation",
    "SigningInvoker",
    "PartitionedDispatcher",
    "AttemptCounter",
    # Model
    "ArchiveTask",
    "FilterCriteria",
    "InputMode",
    "RunStatus",
    "RunSummary",
    "SigningOutcome",
    # Errors
    "ArchsignError",
    "ConfigurationError",
    "TaskFailure",
    "PreProcessError",
    "SigningFailure",
    "NonzeroExitError",
    "InvocationError",
]
