"""cmake-conan — drive the Conan package manager from CMake build state."""

__version__ = "0.1.0"
