"""Jira provider: issue creation and attachments on top of the cached metadata layer."""

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import IO

from pydantic import ValidationError

from jbridge.errors import (
    INCORRECT_PROTOCOL_ERROR_CODE,
    INCORRECT_PROTOCOL_HINT,
    InvalidFilePath,
    InvalidUrl,
    MissingFileName,
    MissingIssueReference,
    NotConfigured,
    RemoteCallFailed,
    TrackerError,
)
from jbridge.fields import FieldMapper
from jbridge.metadata import MetadataCache
from jbridge.models import AttachmentAddingResult, CreatedIssue, FieldSchema, Issue, IssueCreationResult
from jbridge.providers.base import BugTrackerProvider
from jbridge.session import JiraSession
from jbridge.settings import TrackerSettings, is_complete, resolve_settings

logger = logging.getLogger(__name__)

SettingsEditor = Callable[[TrackerSettings], TrackerSettings]


class JiraProvider(BugTrackerProvider):
    """Files issues and attachments against one Jira server.

    If the settings are incomplete at construction time, settings_editor (when
    given) is asked for corrected ones. A provider whose settings are still
    incomplete, or whose URL is malformed, stays disabled and every operation
    reports disabled_reason.

    legacy_attachments restores the original path-upload behavior: no usable
    existence check and success reported regardless of the upload outcome.
    """

    def __init__(
        self,
        settings: TrackerSettings | None = None,
        settings_editor: SettingsEditor | None = None,
        legacy_attachments: bool = False,
        profile: str | None = None,
    ) -> None:
        self._profile = profile
        self.settings = settings if settings is not None else resolve_settings(profile)
        self.legacy_attachments = legacy_attachments
        self._session: JiraSession | None = None
        self._metadata: MetadataCache | None = None
        self._mapper: FieldMapper | None = None
        self.disabled_reason: str | None = NotConfigured.default_message

        if not is_complete(self.settings):
            logger.error(NotConfigured.default_message)
            if settings_editor is not None:
                self.settings = settings_editor(self.settings)
            if not is_complete(self.settings):
                return

        try:
            self._session = JiraSession.open(self.settings)
        except InvalidUrl as exc:
            self.disabled_reason = exc.message
            return
        self.disabled_reason = None
        self._metadata = MetadataCache(self._session)
        self._mapper = FieldMapper(self._metadata)

    def __enter__(self) -> "JiraProvider":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_enabled(self) -> bool:
        return self._session is not None

    @property
    def metadata(self) -> MetadataCache:
        if self._metadata is None:
            raise NotConfigured(self.disabled_reason)
        return self._metadata

    def settings_complete(self) -> bool:
        """Check the currently persisted settings, not the ones this provider was built with."""
        return is_complete(resolve_settings(self._profile))

    # ------------------------------------------------------------------
    # Metadata lookups
    # ------------------------------------------------------------------

    def list_project_keys(self) -> list[str]:
        try:
            return [project.key for project in self.metadata.list_all_projects()]
        except TrackerError as exc:
            logger.error("Could not list projects: %s", exc.message)
            return []

    def list_issue_type_names(self, project_key: str) -> list[str]:
        try:
            return [issue_type.name for issue_type in self.metadata.get_issue_types(project_key)]
        except TrackerError as exc:
            logger.error("Could not list issue types of %s: %s", project_key, exc.message)
            return []

    def list_priority_names(self) -> list[str]:
        try:
            return [priority.name for priority in self.metadata.get_all_priorities()]
        except TrackerError as exc:
            logger.error("Could not list priorities: %s", exc.message)
            return []

    def get_field_schema(self, *project_keys: str) -> FieldSchema | None:
        try:
            return self.metadata.get_field_schema(*project_keys)
        except TrackerError as exc:
            logger.error("Could not load create metadata for %s: %s", ", ".join(project_keys), exc.message)
            return None

    def get_issue(self, key: str) -> Issue | None:
        if self._session is None:
            return None
        try:
            node = self._session.get(f"/issue/{key}")
        except RemoteCallFailed as exc:
            logger.error("Could not fetch issue %s: %s", key, exc.message)
            return None
        try:
            return Issue.from_node(node)
        except (ValidationError, AttributeError, KeyError) as exc:
            logger.error("Unexpected response for /issue/%s: %s", key, exc)
            return None

    # ------------------------------------------------------------------
    # Issue operations
    # ------------------------------------------------------------------

    def create_issue(
        self,
        project_key: str,
        issue_type: str,
        summary: str,
        description: str | None,
        extra_fields: Mapping[str, str] | None = None,
    ) -> IssueCreationResult:
        if self._session is None or self._mapper is None:
            return IssueCreationResult(error=self.disabled_reason)

        try:
            request = self._mapper.build(project_key, issue_type, summary, description, extra_fields)
        except TrackerError as exc:
            logger.error("Could not create issue in %s: %s", project_key, exc.message)
            return IssueCreationResult(error=exc.message)

        try:
            node = self._session.post("/issue", request.model_dump())
        except RemoteCallFailed as exc:
            message = exc.message
            if INCORRECT_PROTOCOL_ERROR_CODE in message:
                message += INCORRECT_PROTOCOL_HINT
            return IssueCreationResult(error=message)

        try:
            created = CreatedIssue.model_validate(node)
        except ValidationError as exc:
            logger.error("Unexpected response for /issue: %s", exc)
            return IssueCreationResult(error=f"Unexpected response for /issue: {exc}")
        logger.info("Created issue %s", created.key)
        return IssueCreationResult(issue=created)

    def attach_file(self, issue_uri: str | None, file_name: str, content: IO[bytes] | bytes) -> AttachmentAddingResult:
        """Upload content as file_name to an issue's attachments URI."""
        if not issue_uri:
            return AttachmentAddingResult(error=MissingIssueReference.default_message)
        if not file_name:
            return AttachmentAddingResult(error=MissingFileName.default_message)
        if self._session is None:
            return AttachmentAddingResult(error=self.disabled_reason)

        try:
            self._session.upload(issue_uri, file_name, content)
        except RemoteCallFailed as exc:
            return AttachmentAddingResult(error=exc.message)
        return AttachmentAddingResult()

    def attach_file_from_path(self, issue_uri: str | None, file_path: str) -> AttachmentAddingResult:
        """Upload a local file to an issue's attachments URI."""
        if not issue_uri:
            return AttachmentAddingResult(error=MissingIssueReference.default_message)
        if not file_path:
            return AttachmentAddingResult(error=InvalidFilePath.default_message)

        path = Path(file_path)
        if self.legacy_attachments:
            # Original check: only a missing path that is also a regular file is rejected.
            if not path.exists() and path.is_file():
                return AttachmentAddingResult(error=InvalidFilePath.default_message)
        elif not path.is_file():
            return AttachmentAddingResult(error=InvalidFilePath.default_message)

        if self._session is None:
            return AttachmentAddingResult(error=self.disabled_reason)

        try:
            with path.open("rb") as content:
                self._session.upload(issue_uri, path.name, content)
        except (RemoteCallFailed, OSError) as exc:
            if not self.legacy_attachments:
                return AttachmentAddingResult(error=str(exc))
            logger.warning("Attaching %s to %s failed, reporting success anyway: %s", path, issue_uri, exc)
        return AttachmentAddingResult()

    def close(self) -> None:
        if self._session is None:
            return
        try:
            self._session.close()
        except Exception:
            logger.exception("Error while closing the Jira session")
        finally:
            self._session = None
            self._metadata = None
            self._mapper = None
            self.disabled_reason = NotConfigured.default_message


_instance: JiraProvider | None = None


def get_provider(
    settings_editor: SettingsEditor | None = None,
    legacy_attachments: bool = False,
    profile: str | None = None,
) -> JiraProvider:
    """Return the process-wide provider, building it on first use."""
    global _instance
    if _instance is None:
        _instance = JiraProvider(
            settings_editor=settings_editor,
            legacy_attachments=legacy_attachments,
            profile=profile,
        )
    return _instance


def free_provider() -> None:
    """Close and discard the process-wide provider; the next get_provider() rebuilds it."""
    global _instance
    if _instance is not None:
        _instance.close()
        _instance = None
