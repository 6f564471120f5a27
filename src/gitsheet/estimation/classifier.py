"""Task type detection from commit text and line deltas."""

from enum import Enum
from typing import Optional, Tuple

from gitsheet.models.config import EstimationConfig


class TaskType(str, Enum):
    """Nature of a task, each with its own duration multiplier."""

    FEATURE = "feature"
    FIX = "fix"
    CLEAN = "clean"
    BUILD = "build"
    VERSION = "version"
    REFACTOR = "refactor"
    TEST = "test"
    INFRASTRUCTURE = "infrastructure"
    DATABASE = "database"


VERSION_KEYWORDS = ("BUMP VERSION", "VERSION BUMP")
BUILD_KEYWORDS = ("BUILD", "PIPELINE", "CI")
BUILD_FIX_KEYWORDS = ("FIX", "ERROR")
CLEAN_KEYWORDS = ("CLEAN", "CLEANUP", "REMOVE", "DELETE")
DATABASE_KEYWORDS = ("DATABASE", "MONGODB", "SQLITE", "REPLICAT", "SYNC", "STORE", "STORAGE")
FIX_KEYWORDS = ("FIX", "BUG", "CRASH", "ISSUE", "ERROR")
REFACTOR_KEYWORDS = ("REFACTOR", "REORGANIZE", "RESTRUCTURE", "REPLACE", "CONSOLIDATE", "MIGRATE", "MOVE")
TEST_KEYWORDS = ("TEST", "SPEC", "COVERAGE")
INFRASTRUCTURE_KEYWORDS = ("PIPELINE", "DEPLOY", "DOCKER", "CONFIG", "SETUP", "DAEMON", "SERVER")


def _contains_any(text: str, keywords: Tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def detect_task_type(
    title: str,
    message: Optional[str],
    lines_deleted: int,
    lines_added: int,
) -> TaskType:
    """Classify a task from its title, message and line counts.

    Keywords are matched as substrings of the upper-cased title and message,
    and the first matching rule wins:

    1. version bumps
    2. build or pipeline fixes
    3. cleanups that delete more than they add (or say "clean up")
    4. database and storage work
    5. fixes
    6. refactors
    7. tests
    8. infrastructure
    9. everything else is a feature

    Args:
        title: Task title
        message: Full commit message of the first commit
        lines_deleted: Lines deleted across the cluster
        lines_added: Lines added across the cluster

    Returns:
        Detected TaskType
    """
    text = f"{title} {message or ''}".upper()

    if _contains_any(text, VERSION_KEYWORDS):
        return TaskType.VERSION

    if _contains_any(text, BUILD_KEYWORDS) and _contains_any(text, BUILD_FIX_KEYWORDS):
        return TaskType.BUILD

    if _contains_any(text, CLEAN_KEYWORDS):
        if lines_deleted > lines_added or "CLEAN UP" in text:
            return TaskType.CLEAN

    if _contains_any(text, DATABASE_KEYWORDS):
        return TaskType.DATABASE

    if _contains_any(text, FIX_KEYWORDS):
        return TaskType.FIX

    if _contains_any(text, REFACTOR_KEYWORDS):
        return TaskType.REFACTOR

    if _contains_any(text, TEST_KEYWORDS):
        return TaskType.TEST

    if _contains_any(text, INFRASTRUCTURE_KEYWORDS):
        return TaskType.INFRASTRUCTURE

    return TaskType.FEATURE


def type_multiplier(task_type: TaskType, config: EstimationConfig) -> float:
    """Duration multiplier for a task type; unknown types count as features."""
    multipliers = config.type_multipliers
    return multipliers.get(task_type.value, multipliers.get(TaskType.FEATURE.value, 1.0))
