"""NPM ecosystem helpers."""

from .reader import DEPENDENCY_SECTIONS, find_lock_file, find_project_root, read_manifest

__all__ = ["DEPENDENCY_SECTIONS", "find_lock_file", "find_project_root", "read_manifest"]
