"""Abstract base class for bug tracker providers."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import IO

from jbridge.models import AttachmentAddingResult, IssueCreationResult


class BugTrackerProvider(ABC):
    @abstractmethod
    def list_project_keys(self) -> list[str]: ...

    @abstractmethod
    def list_issue_type_names(self, project_key: str) -> list[str]: ...

    @abstractmethod
    def create_issue(
        self,
        project_key: str,
        issue_type: str,
        summary: str,
        description: str | None,
        extra_fields: Mapping[str, str] | None = None,
    ) -> IssueCreationResult: ...

    @abstractmethod
    def attach_file(self, issue_uri: str | None, file_name: str, content: IO[bytes] | bytes) -> AttachmentAddingResult: ...

    @abstractmethod
    def attach_file_from_path(self, issue_uri: str | None, file_path: str) -> AttachmentAddingResult: ...

    @abstractmethod
    def close(self) -> None: ...
