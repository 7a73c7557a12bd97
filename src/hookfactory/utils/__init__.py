"""Shared utilities for hookfactory."""

from hookfactory.utils.project import find_project_root, get_project_root

__all__ = ["find_project_root", "get_project_root"]
