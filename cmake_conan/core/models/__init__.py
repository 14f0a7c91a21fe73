"""
Domain models — Pydantic types for cmake-conan.

All models are re-exported here for convenient access:

    from cmake_conan.core.models import BuildScope, ArgumentSpec, ConanSettings
"""

from cmake_conan.core.models.action import Action, Receipt
from cmake_conan.core.models.conanfile import Conanfile, SystemLibrary
from cmake_conan.core.models.invocation import (
    ArgumentSpec,
    ConanResult,
    Invocation,
    ParsedArguments,
)
from cmake_conan.core.models.project import ConanToolConfig, InstallConfig, ProjectConfig
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.models.settings import CompilerId, ConanSettings

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # conanfile.py
    "Conanfile",
    "SystemLibrary",
    # invocation.py
    "ArgumentSpec",
    "ConanResult",
    "Invocation",
    "ParsedArguments",
    # project.py
    "ConanToolConfig",
    "InstallConfig",
    "ProjectConfig",
    # scope.py
    "BuildScope",
    # settings.py
    "CompilerId",
    "ConanSettings",
]
