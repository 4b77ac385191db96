"""Pydantic models for Jira REST payloads and the results the provider hands back."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProjectSummary(BaseModel):
    """One entry of the bulk project listing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    key: str
    name: str


class IssueType(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    subtask: bool = False
    description: str | None = None


class Project(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    key: str
    name: str
    issue_types: list[IssueType] = Field(default=[], alias="issueTypes")


class Priority(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str


class FieldInfo(BaseModel):
    """Create-issue metadata for a single field of a project/issue-type pair."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    name: str = ""
    required: bool = False
    field_schema: dict[str, Any] = Field(default={}, alias="schema")
    allowed_values: list[Any] | None = Field(default=None, alias="allowedValues")

    @property
    def has_allowed_values(self) -> bool:
        return self.allowed_values is not None


# project key -> issue type name -> field id -> FieldInfo
FieldSchema = dict[str, dict[str, dict[str, FieldInfo]]]


class IssueInput(BaseModel):
    """Body of a create-issue request, ready to post."""

    model_config = ConfigDict(frozen=True)

    fields: dict[str, Any]


class CreatedIssue(BaseModel):
    """The id, key and REST URL Jira answers a create-issue POST with."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    key: str
    self_url: str = Field(alias="self")

    @property
    def attachments_url(self) -> str:
        return f"{self.self_url}/attachments"


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    summary: str
    status: str | None = None
    issue_type: str | None = None
    url: str

    @classmethod
    def from_node(cls, node: dict) -> "Issue":
        fields = node.get("fields", {})
        status = fields.get("status") or {}
        issue_type = fields.get("issuetype") or {}
        return cls(
            key=node["key"],
            summary=fields.get("summary", ""),
            status=status.get("name"),
            issue_type=issue_type.get("name"),
            url=node["self"],
        )


class IssueCreationResult(BaseModel):
    """Either the created issue or an error message, never both."""

    model_config = ConfigDict(frozen=True)

    issue: CreatedIssue | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None


class AttachmentAddingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None
