"""
Project root discovery utilities.

Finds the repository a project-scoped settings file belongs to by searching
upward for marker files like .claude/, .hookfactory.json or .git/.
"""

from pathlib import Path

# Markers that indicate a project root, in order of priority
PROJECT_ROOT_MARKERS = [
    ".hookfactory.json",  # hookfactory configuration file
    ".claude",  # Host runtime project settings directory
    ".git",  # Git repository
]


def find_project_root(start: Path | None = None) -> Path | None:
    """
    Find the project root directory by searching upward for marker files.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root directory, or None if not found.

    Example:
        >>> find_project_root(Path("/project/deep/nested/dir"))
        PosixPath('/project')
    """
    if start is None:
        start = Path.cwd()

    current = start.resolve()
    home = Path.home().resolve()
    for candidate in [current, *current.parents]:
        # ~/.claude is the user-level directory, not a project marker
        if candidate == home:
            continue
        for marker in PROJECT_ROOT_MARKERS:
            if (candidate / marker).exists():
                return candidate
    return None


def get_project_root(start: Path | None = None) -> Path:
    """
    Get the project root directory, falling back to the start directory.

    Unlike ``find_project_root`` this never fails: a directory with no
    markers is treated as its own project root, so ``hook install ... project``
    works in a fresh checkout.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root directory.
    """
    if start is None:
        start = Path.cwd()
    return find_project_root(start) or start.resolve()
