"""Pulumi dynamic providers for CloudPrism ingredients."""

from .file import File, FileProvider

__all__ = [
    "File",
    "FileProvider",
]
