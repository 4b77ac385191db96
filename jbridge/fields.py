"""Mapping of a generic extra-fields dict onto typed Jira create-issue fields."""

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from jbridge.metadata import MetadataCache
from jbridge.models import IssueInput, IssueType, Priority

logger = logging.getLogger(__name__)


class IssueInputBuilder:
    """Accumulates the `fields` object of a create-issue request."""

    def __init__(self, project_key: str, issue_type: IssueType) -> None:
        self._fields: dict[str, Any] = {
            "project": {"key": project_key},
            "issuetype": {"id": issue_type.id},
        }

    def set_summary(self, summary: str) -> None:
        self._fields["summary"] = summary

    def set_description(self, description: str | None) -> None:
        self._fields["description"] = description

    def set_priority(self, priority: Priority) -> None:
        self._fields["priority"] = {"id": priority.id}

    def set_names(self, field_id: str, names: list[str]) -> None:
        self._fields[field_id] = [{"name": name} for name in names]

    def set_field(self, field_id: str, value: Any) -> None:
        self._fields[field_id] = value

    def build(self) -> IssueInput:
        return IssueInput(fields=dict(self._fields))


class FieldKind(Enum):
    """Extra-field keys that need a specific encoding, in match order."""

    PRIORITY = "priority"
    COMPONENTS = "components"
    VERSIONS = "versions"
    FIX_VERSIONS = "fixVersions"
    ASSIGNEE = "assignee"
    PARENT = "parent"
    RESOLUTION = "resolution"


_KINDS_BY_KEY = {kind.value: kind for kind in FieldKind}


class FieldMapper:
    def __init__(self, metadata: MetadataCache) -> None:
        self.metadata = metadata
        self._encoders: dict[FieldKind, Callable[[IssueInputBuilder, str], None]] = {
            FieldKind.PRIORITY: self._encode_priority,
            FieldKind.COMPONENTS: lambda builder, value: builder.set_names("components", [value]),
            FieldKind.VERSIONS: lambda builder, value: builder.set_names("versions", [value]),
            FieldKind.FIX_VERSIONS: lambda builder, value: builder.set_names("fixVersions", [value]),
            FieldKind.ASSIGNEE: lambda builder, value: builder.set_field("assignee", {"name": value}),
            FieldKind.PARENT: lambda builder, value: builder.set_field("parent", {"key": value}),
            FieldKind.RESOLUTION: lambda builder, value: builder.set_field("resolution", {"name": value}),
        }

    def _encode_priority(self, builder: IssueInputBuilder, value: str) -> None:
        priority = self.metadata.get_priority_by_name(value)
        if priority is None:
            # Unknown priorities don't fail the issue; the server default applies.
            logger.warning("Priority '%s' not found, creating the issue without a priority", value)
            return
        builder.set_priority(priority)

    def _encode_by_schema(
        self,
        builder: IssueInputBuilder,
        project_key: str,
        issue_type_name: str,
        field_id: str,
        value: str,
    ) -> None:
        if self.metadata.has_allowed_values(project_key, issue_type_name, field_id):
            builder.set_field(field_id, {"value": value})
        else:
            builder.set_field(field_id, value)

    def build(
        self,
        project_key: str,
        issue_type_name: str,
        summary: str,
        description: str | None,
        extra_fields: Mapping[str, str] | None = None,
    ) -> IssueInput:
        """Build a create-issue request.

        Raises:
            UnknownIssueType: the project has no issue type with that name
            RemoteCallFailed: project or field metadata could not be fetched
        """
        issue_type = self.metadata.get_issue_type(project_key, issue_type_name)

        builder = IssueInputBuilder(project_key, issue_type)
        builder.set_summary(summary)
        builder.set_description(description)

        for key, value in (extra_fields or {}).items():
            kind = _KINDS_BY_KEY.get(key)
            if kind is not None:
                self._encoders[kind](builder, value)
            else:
                self._encode_by_schema(builder, project_key, issue_type_name, key, value)

        return builder.build()
