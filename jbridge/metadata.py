"""Session-lifetime caches for Jira metadata.

Every Jira metadata call is expensive, so each result is kept for as long as the
owning provider lives. Entries are never refreshed; a failed fetch stores
nothing, so the next call simply tries again.
"""

import logging

from pydantic import ValidationError

from jbridge.errors import RemoteCallFailed, UnknownIssueType
from jbridge.models import FieldInfo, FieldSchema, IssueType, Priority, Project, ProjectSummary
from jbridge.session import JiraSession

logger = logging.getLogger(__name__)

CREATEMETA_EXPAND = "projects.issuetypes.fields"

# Raised while parsing a body that is valid JSON but not the expected shape.
_SHAPE_ERRORS = (ValidationError, AttributeError, KeyError, TypeError)


def _unexpected(path: str, exc: Exception) -> RemoteCallFailed:
    logger.error("Unexpected response for %s: %s", path, exc)
    return RemoteCallFailed(f"Unexpected response for {path}: {exc}")


class MetadataCache:
    def __init__(self, session: JiraSession) -> None:
        self._session = session
        self._all_projects: list[ProjectSummary] | None = None
        self._projects: dict[str, Project] = {}
        self._priorities: list[Priority] | None = None
        self._fields: FieldSchema = {}

    def list_all_projects(self) -> list[ProjectSummary]:
        if self._all_projects is None:
            nodes = self._session.get("/project")
            try:
                self._all_projects = [ProjectSummary.model_validate(node) for node in nodes]
            except _SHAPE_ERRORS as exc:
                raise _unexpected("/project", exc) from exc
        return self._all_projects

    def get_project(self, key: str) -> Project:
        if key not in self._projects:
            node = self._session.get(f"/project/{key}")
            try:
                self._projects[key] = Project.model_validate(node)
            except ValidationError as exc:
                raise _unexpected(f"/project/{key}", exc) from exc
        return self._projects[key]

    def get_issue_types(self, project_key: str) -> list[IssueType]:
        return self.get_project(project_key).issue_types

    def get_issue_type(self, project_key: str, name: str) -> IssueType:
        for issue_type in self.get_issue_types(project_key):
            if issue_type.name == name:
                return issue_type
        raise UnknownIssueType(project_key, name)

    def get_all_priorities(self) -> list[Priority]:
        if self._priorities is None:
            nodes = self._session.get("/priority")
            try:
                self._priorities = [Priority.model_validate(node) for node in nodes]
            except _SHAPE_ERRORS as exc:
                raise _unexpected("/priority", exc) from exc
        return self._priorities

    def get_priority_by_name(self, name: str) -> Priority | None:
        """Exact-match lookup; None when unknown or when priorities can't be fetched."""
        try:
            priorities = self.get_all_priorities()
        except RemoteCallFailed as exc:
            logger.warning("Could not load priorities: %s", exc.message)
            return None
        for priority in priorities:
            if priority.name == name:
                return priority
        return None

    def get_field_schema(self, *project_keys: str) -> FieldSchema:
        """Return create-issue field metadata, fetching uncached projects in one batch.

        The returned mapping is the whole cache, including projects requested by
        earlier calls, not just the keys passed in. It is a copy: editing it
        leaves the cache untouched.
        """
        uncached = [key for key in project_keys if key not in self._fields]
        if uncached:
            body = self._session.get(
                "/issue/createmeta",
                params={"projectKeys": ",".join(uncached), "expand": CREATEMETA_EXPAND},
            )
            try:
                fetched = {
                    project["key"]: {
                        issue_type["name"]: {
                            field_id: FieldInfo.model_validate({"id": field_id, **info})
                            for field_id, info in issue_type.get("fields", {}).items()
                        }
                        for issue_type in project.get("issuetypes", [])
                    }
                    for project in body.get("projects", [])
                }
            except _SHAPE_ERRORS as exc:
                raise _unexpected("/issue/createmeta", exc) from exc
            self._fields.update(fetched)
        return {
            project_key: {type_name: dict(fields) for type_name, fields in issue_types.items()}
            for project_key, issue_types in self._fields.items()
        }

    def has_allowed_values(self, project_key: str, issue_type_name: str, field_id: str) -> bool:
        """True when the field only accepts one of a server-defined set of options."""
        schema = self.get_field_schema(project_key)
        field = schema.get(project_key, {}).get(issue_type_name, {}).get(field_id)
        if field is None:
            logger.debug("No create metadata for %s/%s/%s", project_key, issue_type_name, field_id)
            return False
        return field.has_allowed_values
