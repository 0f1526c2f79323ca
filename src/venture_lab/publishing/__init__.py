"""Publishing: candidate selection and idempotent commits to the site repository."""

from venture_lab.publishing.github import CommitResult, GitHubPublisher
from venture_lab.publishing.selector import PipelineCandidate, PublishSelector
from venture_lab.publishing.service import PublishResult, PublishService

__all__ = [
    "CommitResult",
    "GitHubPublisher",
    "PipelineCandidate",
    "PublishResult",
    "PublishSelector",
    "PublishService",
]
