"""Parsers for files CMake and conan write."""
