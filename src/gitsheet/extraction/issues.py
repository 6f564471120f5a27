"""Issue id detection in commit messages and branch names."""

import re
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional, Pattern

from gitsheet.models.commit import DEFAULT_TITLE_LENGTH, CommitRecord, make_title

GENERIC_KEY = r"[A-Z][A-Z0-9]+"
_KEY_RE = re.compile(rf"\b(?P<key>{GENERIC_KEY})-\d+\b", re.IGNORECASE)


def issue_pattern(prefix: Optional[str] = None) -> Pattern[str]:
    """Compile the issue id pattern for a project key.

    Args:
        prefix: Issue key such as ``ABC``. Without one, any
            ``KEY-123`` shaped id is accepted.

    Returns:
        Case-insensitive compiled pattern with the id in group 1
    """
    key = re.escape(prefix.strip().rstrip("-")) if prefix and prefix.strip() else GENERIC_KEY
    return re.compile(rf"\b({key}-\d+)\b", re.IGNORECASE)


def extract_issue_ids(text: Optional[str], pattern: Pattern[str]) -> List[str]:
    """Return upper-cased issue ids found in text, de-duplicated in order."""
    if not text:
        return []
    seen: List[str] = []
    for match in pattern.finditer(text):
        issue_id = match.group(1).upper()
        if issue_id not in seen:
            seen.append(issue_id)
    return seen


def detect_prefix(texts: Iterable[str], min_occurrences: int = 2) -> Optional[str]:
    """Find the most common issue key in a set of texts.

    Args:
        texts: Branch names, merge request titles or commit subjects
        min_occurrences: Minimum number of texts a key must appear in

    Returns:
        Upper-cased key, or None if no key is frequent enough
    """
    counts: Counter = Counter()
    for text in texts:
        keys = {match.group("key").upper() for match in _KEY_RE.finditer(text or "")}
        counts.update(keys)

    # most_common keeps first-seen order among ties
    for key, count in counts.most_common():
        if count >= min_occurrences:
            return key
    return None


def build_commit_record(
    sha: str,
    timestamp: datetime,
    message: str,
    pattern: Pattern[str],
    files_changed: int = 0,
    lines_added: int = 0,
    lines_deleted: int = 0,
    is_merge: bool = False,
    title_length: int = DEFAULT_TITLE_LENGTH,
    branch_issue_id: Optional[str] = None,
) -> CommitRecord:
    """Create a CommitRecord, detecting its issue id from the message.

    The first issue id in the message identifies the task. Commits without
    one take the issue id of the branch they were merged from, if any;
    otherwise the truncated subject line becomes the task id.
    """
    title = make_title(message, title_length) or sha[:7]
    issue_ids = extract_issue_ids(message, pattern)
    issue_id = issue_ids[0] if issue_ids else branch_issue_id

    return CommitRecord(
        sha=sha,
        timestamp=timestamp,
        message=message.strip(),
        title=title,
        task_id=issue_id or title,
        issue_id=issue_id,
        has_issue=issue_id is not None,
        is_merge=is_merge,
        files_changed=files_changed,
        lines_added=lines_added,
        lines_deleted=lines_deleted,
    )
