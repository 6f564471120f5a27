"""Merge commit reconciliation.

A merge commit repeats the line counts of the feature branch it brings in.
When the merged branch name matches a task already present in the commit
list, the merge commit is marked as a duplicate so its work is only counted
once.
"""

import re
from typing import List, Optional, Sequence

import structlog

from gitsheet.models.commit import CommitRecord

logger = structlog.get_logger(__name__)

_MERGE_PATTERNS = [
    re.compile(r"^Merge pull request #\d+ from [^/\s]+/(?P<branch>\S+)", re.IGNORECASE),
    re.compile(r"^Merge remote-tracking branch '(?P<branch>[^']+)'", re.IGNORECASE),
    re.compile(r"^Merge branch '(?P<branch>[^']+)'", re.IGNORECASE),
    re.compile(r"^Merge branch (?P<branch>\S+)", re.IGNORECASE),
]
_BRANCH_PREFIXES = (
    "refs/heads/",
    "refs/remotes/",
    "remotes/",
    "origin/",
    "upstream/",
    "feature/",
    "features/",
    "bugfix/",
    "hotfix/",
    "fix/",
)
_SEPARATORS = re.compile(r"[^a-z0-9]+")


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def _normalize(text: str) -> str:
    return _SEPARATORS.sub(" ", text.lower()).strip()


def normalize_branch_name(name: str) -> str:
    """Strip ref and workflow prefixes and collapse separators.

    ``origin/feature/ABC-12_login-form`` becomes ``abc 12 login form``.
    """
    name = name.strip()
    stripped = True
    while stripped:
        stripped = False
        for prefix in _BRANCH_PREFIXES:
            if name.lower().startswith(prefix):
                name = name[len(prefix):]
                stripped = True
    return _normalize(name)


def merged_branch_name(message: str) -> Optional[str]:
    """Return the branch named in a merge commit subject, if any."""
    subject = message.strip().splitlines()[0] if message.strip() else ""
    for pattern in _MERGE_PATTERNS:
        match = pattern.match(subject)
        if match:
            return match.group("branch")
    return None


def is_fuzzy_match(a: str, b: str) -> bool:
    """Whether two normalized strings are within half the longer length."""
    if not a or not b:
        return False
    return levenshtein(a, b) <= max(len(a), len(b)) / 2


def find_matching_commit(
    branch: str, candidates: Sequence[CommitRecord]
) -> Optional[CommitRecord]:
    """Find the commit whose task best matches a merged branch.

    Branch names usually extend the task id with a slug
    (``ABC-12-login-form``), so the branch is compared against each
    candidate's task id, title, and the branch prefix of the same length as
    the task id.

    Args:
        branch: Raw branch name from the merge message
        candidates: Commits that may have been merged, oldest first

    Returns:
        Best matching commit, or None
    """
    normalized = normalize_branch_name(branch)
    if not normalized:
        return None

    best: Optional[CommitRecord] = None
    best_distance: Optional[int] = None
    for candidate in candidates:
        for target in dict.fromkeys((_normalize(candidate.task_id), _normalize(candidate.title))):
            if not target:
                continue
            for name in (normalized, normalized[: len(target)]):
                if not is_fuzzy_match(name, target):
                    continue
                distance = levenshtein(name, target)
                # Later candidates win ties, they are closer to the merge
                if best_distance is None or distance <= best_distance:
                    best, best_distance = candidate, distance
    return best


def reconcile_merge_commits(commits: Sequence[CommitRecord]) -> List[CommitRecord]:
    """Mark merge commits that duplicate work from a merged branch.

    Args:
        commits: Commit records in any order

    Returns:
        New chronological list; matched merge commits have is_duplicate set
    """
    ordered = sorted(commits, key=lambda c: (c.timestamp, c.sha))
    result: List[CommitRecord] = []

    for index, commit in enumerate(ordered):
        if not commit.is_merge or commit.is_duplicate:
            result.append(commit)
            continue

        branch = merged_branch_name(commit.message)
        if branch is None:
            result.append(commit)
            continue

        candidates = [c for c in ordered[:index] if not c.is_merge and not c.is_duplicate]
        match = find_matching_commit(branch, candidates)
        if match is None:
            result.append(commit)
            continue

        logger.debug(
            "merge_commit_reconciled",
            merge_sha=commit.sha[:7],
            branch=branch,
            matched_sha=match.sha[:7],
            task_id=match.task_id,
        )
        result.append(commit.model_copy(update={"is_duplicate": True}))

    return result
