"""Git repository commit collection."""

from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

import git
import structlog
from git import Commit, Repo

from gitsheet.exceptions import InvalidInputError, RepositoryAccessError
from gitsheet.extraction.issues import build_commit_record, detect_prefix, extract_issue_ids, issue_pattern
from gitsheet.models import CommitRecord, RepositoryConfig
from gitsheet.reconcile import merged_branch_name, reconcile_merge_commits

logger = structlog.get_logger(__name__)


class GitExtractor:
    """Collects commit records from a Git repository."""

    def __init__(self, config: RepositoryConfig) -> None:
        """Initialize the GitExtractor.

        Args:
            config: Repository configuration

        Raises:
            InvalidInputError: If repository path is invalid
        """
        self.config = config
        if not config.repo_path.exists():
            raise InvalidInputError(f"Repository path does not exist: {config.repo_path}")

        try:
            self.repo = Repo(config.repo_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise InvalidInputError(f"Invalid Git repository: {config.repo_path}") from e

        self.pattern = issue_pattern(config.issue_prefix)

    def iter_commits(
        self,
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> Iterator[CommitRecord]:
        """Yield commit records, newest first.

        Args:
            since: Only commits authored on or after this day
            until: Only commits authored on or before this day

        Yields:
            CommitRecord objects

        Raises:
            RepositoryAccessError: If git fails to walk the history
        """
        author = self.config.author_email.lower() if self.config.author_email else None

        try:
            branch_issues = self.branch_issue_ids()
            for commit in self.repo.iter_commits(self.config.branch):
                if author and (commit.author.email or "").lower() != author:
                    continue

                timestamp = datetime.fromtimestamp(commit.authored_date)
                if since and timestamp.date() < since:
                    continue
                if until and timestamp.date() > until:
                    continue

                yield self._to_record(commit, timestamp, branch_issues.get(commit.hexsha))
        except (git.exc.GitCommandError, ValueError) as e:
            raise RepositoryAccessError(f"Failed to read history of {self.config.repo_path}: {e}") from e

    def extract_commits(
        self,
        since: Optional[date] = None,
        until: Optional[date] = None,
        reconcile: bool = True,
    ) -> List[CommitRecord]:
        """Collect commit records in chronological order.

        Args:
            since: Only commits authored on or after this day
            until: Only commits authored on or before this day
            reconcile: Mark merge commits that duplicate merged work

        Returns:
            List of CommitRecord, oldest first
        """
        commits = sorted(self.iter_commits(since, until), key=lambda c: (c.timestamp, c.sha))
        if reconcile:
            commits = reconcile_merge_commits(commits)

        logger.info(
            "commits_extracted",
            repo=str(self.config.repo_path),
            total=len(commits),
            tracked=sum(1 for c in commits if c.has_issue),
            duplicates=sum(1 for c in commits if c.is_duplicate),
        )
        return commits

    def branch_names(self) -> List[str]:
        """Names of local branches and remote-tracking refs."""
        names = [head.name for head in self.repo.heads]
        for remote in self.repo.remotes:
            names.extend(ref.name for ref in remote.refs)
        return names

    def branch_issue_ids(self) -> Dict[str, str]:
        """Map commits brought in by a merge to the merged branch's issue id.

        For every merge commit whose subject names a branch carrying an
        issue id, the commits reachable from the merged parent but not from
        the first parent get that id. When a commit was merged more than
        once, the earliest merge wins.

        Returns:
            Mapping of commit SHA to upper-cased issue id
        """
        branch_issues: Dict[str, str] = {}
        for merge in self.repo.iter_commits(self.config.branch, min_parents=2):
            message = merge.message if isinstance(merge.message, str) else merge.message.decode("utf-8", "replace")
            branch = merged_branch_name(message)
            issue_ids = extract_issue_ids(branch, self.pattern)
            if not issue_ids:
                continue

            first_parent, merged_parent = merge.parents[0], merge.parents[1]
            # Newest merges come first, so older merges overwrite them
            for commit in self.repo.iter_commits(f"{first_parent.hexsha}..{merged_parent.hexsha}"):
                branch_issues[commit.hexsha] = issue_ids[0]

        logger.debug("branch_issue_ids_collected", commits=len(branch_issues))
        return branch_issues

    def detect_issue_prefix(self, min_occurrences: int = 2, max_commits: int = 200) -> Optional[str]:
        """Guess the project's issue key from branch names.

        Falls back to recent commit subjects when branches carry no key.

        Args:
            min_occurrences: Minimum number of names a key must appear in
            max_commits: Number of recent commits to inspect on fallback

        Returns:
            Upper-cased key such as ``ABC``, or None
        """
        prefix = detect_prefix(self.branch_names(), min_occurrences)
        if prefix:
            return prefix

        try:
            subjects = [
                commit.summary
                for commit in self.repo.iter_commits(self.config.branch, max_count=max_commits)
            ]
        except (git.exc.GitCommandError, ValueError) as e:
            raise RepositoryAccessError(f"Failed to read history of {self.config.repo_path}: {e}") from e
        return detect_prefix(subjects, min_occurrences)

    def _to_record(
        self, commit: Commit, timestamp: datetime, branch_issue_id: Optional[str] = None
    ) -> CommitRecord:
        """Convert a GitPython Commit into a CommitRecord.

        Args:
            commit: GitPython Commit object
            timestamp: Author time in local time
            branch_issue_id: Issue id of the branch the commit was merged from

        Returns:
            CommitRecord object
        """
        message = commit.message if isinstance(commit.message, str) else commit.message.decode("utf-8", "replace")

        files_changed = lines_added = lines_deleted = 0
        try:
            stats = commit.stats
            files_changed = len(stats.files)
            lines_added = stats.total.get("insertions", 0)
            lines_deleted = stats.total.get("deletions", 0)
        except git.exc.GitCommandError:
            # Stats not available
            logger.debug("commit_stats_unavailable", sha=commit.hexsha[:7])

        return build_commit_record(
            sha=commit.hexsha,
            timestamp=timestamp,
            message=message,
            pattern=self.pattern,
            files_changed=files_changed,
            lines_added=lines_added,
            lines_deleted=lines_deleted,
            is_merge=len(commit.parents) > 1,
            title_length=self.config.title_length,
            branch_issue_id=branch_issue_id,
        )
