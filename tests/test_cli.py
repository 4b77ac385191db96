"""Smoke tests for all CLI commands using typer CliRunner."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import tomlkit
from typer.testing import CliRunner

from jbridge.errors import URL_IS_INCORRECT
from jbridge.main import app
from jbridge.models import AttachmentAddingResult, CreatedIssue, FieldInfo, Issue, IssueCreationResult
from jbridge.settings import TrackerSettings, save_settings

runner = CliRunner()

_CREATED = CreatedIssue(id="10001", key="QA-1", self_url="https://jira.example.com/rest/api/2/issue/10001")


def _mock_provider() -> MagicMock:
    provider = MagicMock()
    provider.is_enabled = True
    provider.list_project_keys.return_value = ["QA", "WEB"]
    provider.list_issue_type_names.return_value = ["Bug", "Task"]
    provider.list_priority_names.return_value = ["Highest", "Medium"]
    provider.get_field_schema.return_value = {
        "QA": {
            "Bug": {
                "summary": FieldInfo(id="summary", name="Summary", required=True),
                "customfield_10010": FieldInfo(
                    id="customfield_10010",
                    name="Severity",
                    allowed_values=[{"id": "100", "value": "Critical"}],
                ),
            }
        }
    }
    provider.create_issue.return_value = IssueCreationResult(issue=_CREATED)
    provider.attach_file_from_path.return_value = AttachmentAddingResult()
    provider.get_issue.return_value = Issue(
        key="QA-1",
        summary="Login fails",
        status="Open",
        issue_type="Bug",
        url="https://jira.example.com/rest/api/2/issue/10001",
    )
    return provider


class TestLookups:
    def test_projects(self) -> None:
        with patch("jbridge.main.get_provider", return_value=_mock_provider()):
            result = runner.invoke(app, ["projects"])
        assert result.exit_code == 0, result.output
        assert "WEB" in result.output

    def test_issue_types(self) -> None:
        provider = _mock_provider()
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["issue-types", "QA"])
        assert result.exit_code == 0, result.output
        assert "Task" in result.output
        provider.list_issue_type_names.assert_called_once_with("QA")

    def test_priorities(self) -> None:
        with patch("jbridge.main.get_provider", return_value=_mock_provider()):
            result = runner.invoke(app, ["priorities"])
        assert result.exit_code == 0, result.output
        assert "Highest" in result.output

    def test_fields(self) -> None:
        with patch("jbridge.main.get_provider", return_value=_mock_provider()):
            result = runner.invoke(app, ["fields", "QA", "Bug"])
        assert result.exit_code == 0, result.output
        assert "customfield_10010" in result.output
        assert "Critical" in result.output

    def test_fields_unknown_issue_type(self) -> None:
        with patch("jbridge.main.get_provider", return_value=_mock_provider()):
            result = runner.invoke(app, ["fields", "QA", "Epic"])
        assert result.exit_code != 0

    def test_not_configured_exits(self) -> None:
        provider = _mock_provider()
        provider.is_enabled = False
        provider.disabled_reason = URL_IS_INCORRECT
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["projects"])
        assert result.exit_code == 1
        assert URL_IS_INCORRECT in result.output
        assert "jbridge configure" in result.output


class TestCreateIssue:
    def test_creates_with_fields(self) -> None:
        provider = _mock_provider()
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(
                app,
                ["create-issue", "QA", "Bug", "Login fails", "Steps", "-f", "priority=High", "-f", "components=UI"],
            )
        assert result.exit_code == 0, result.output
        assert "QA-1" in result.output
        provider.create_issue.assert_called_once_with(
            "QA", "Bug", "Login fails", "Steps", {"priority": "High", "components": "UI"}
        )

    def test_field_value_may_contain_equals(self) -> None:
        provider = _mock_provider()
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["create-issue", "QA", "Bug", "s", "-f", "customfield_1=a=b"])
        assert result.exit_code == 0, result.output
        assert provider.create_issue.call_args.args[4] == {"customfield_1": "a=b"}

    def test_invalid_field_exits(self) -> None:
        with patch("jbridge.main.get_provider", return_value=_mock_provider()):
            result = runner.invoke(app, ["create-issue", "QA", "Bug", "s", "-f", "priority"])
        assert result.exit_code == 1

    def test_error_result_exits(self) -> None:
        provider = _mock_provider()
        provider.create_issue.return_value = IssueCreationResult(error="Issue type 'Epic' is not available")
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["create-issue", "QA", "Epic", "s"])
        assert result.exit_code == 1
        assert "not available" in result.output

    def test_attaches_files(self, tmp_path: Path) -> None:
        log = tmp_path / "ready.log"
        log.write_text("x")
        provider = _mock_provider()
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["create-issue", "QA", "Bug", "s", "--attach", str(log)])
        assert result.exit_code == 0, result.output
        provider.attach_file_from_path.assert_called_once_with(_CREATED.attachments_url, str(log))


class TestAttach:
    def test_attach_by_uri(self, tmp_path: Path) -> None:
        log = tmp_path / "ready.log"
        log.write_text("x")
        provider = _mock_provider()
        uri = _CREATED.attachments_url
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["attach", uri, str(log)])
        assert result.exit_code == 0, result.output
        provider.get_issue.assert_not_called()
        provider.attach_file_from_path.assert_called_once_with(uri, str(log))

    def test_attach_by_key(self, tmp_path: Path) -> None:
        log = tmp_path / "ready.log"
        log.write_text("x")
        provider = _mock_provider()
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["attach", "QA-1", str(log)])
        assert result.exit_code == 0, result.output
        provider.attach_file_from_path.assert_called_once_with(_CREATED.attachments_url, str(log))

    def test_attach_failure_exits(self, tmp_path: Path) -> None:
        provider = _mock_provider()
        provider.attach_file_from_path.return_value = AttachmentAddingResult(error="Incorrect file path.")
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["attach", _CREATED.attachments_url, str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "Incorrect file path." in result.output


class TestGetIssue:
    def test_renders_detail(self) -> None:
        with patch("jbridge.main.get_provider", return_value=_mock_provider()):
            result = runner.invoke(app, ["get-issue", "QA-1"])
        assert result.exit_code == 0, result.output
        assert "Login fails" in result.output

    def test_missing_issue_exits(self) -> None:
        provider = _mock_provider()
        provider.get_issue.return_value = None
        with patch("jbridge.main.get_provider", return_value=provider):
            result = runner.invoke(app, ["get-issue", "QA-404"])
        assert result.exit_code == 1


class TestConfig:
    def test_configure_writes_settings(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app,
            ["configure", "--no-verify"],
            input="https://jira.example.com\nqa-bot\ns3cret\n",
        )
        assert result.exit_code == 0, result.output
        doc = tomlkit.load(isolated_config.open())
        assert doc["default_url"] == "https://jira.example.com"
        assert doc["login"] == "qa-bot"
        assert doc["password"] == "s3cret"

    def test_configure_into_profile(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app,
            ["configure", "--profile", "staging", "--no-verify"],
            input="https://staging.example.com\nbot\npw\n",
        )
        assert result.exit_code == 0, result.output
        doc = tomlkit.load(isolated_config.open())
        assert doc["staging"]["default_url"] == "https://staging.example.com"

    def test_configure_verifies_connection(self) -> None:
        with patch("jbridge.main.JiraProvider") as provider_cls:
            provider = provider_cls.return_value.__enter__.return_value
            provider.is_enabled = True
            provider.list_project_keys.return_value = ["QA"]
            result = runner.invoke(app, ["configure"], input="https://jira.example.com\nqa-bot\ns3cret\n")
        assert result.exit_code == 0, result.output
        assert "Found 1 project(s)" in result.output

    def test_configure_incomplete_exits(self) -> None:
        result = runner.invoke(app, ["configure", "--no-verify"], input="https://jira.example.com\n\npw\n")
        assert result.exit_code == 1

    def test_config_show_masks_password(self) -> None:
        save_settings(TrackerSettings(url="https://jira.example.com", login="qa-bot", password="s3cret"))
        result = runner.invoke(app, ["config-show"])
        assert result.exit_code == 0, result.output
        assert "qa-bot" in result.output
        assert "s3cret" not in result.output

    def test_config_show_incomplete(self) -> None:
        result = runner.invoke(app, ["config-show"])
        assert result.exit_code == 0, result.output
        assert "not set" in result.output


@pytest.mark.parametrize("level", ["DEBUG", "warning"])
def test_log_level_option(level: str) -> None:
    with patch("jbridge.main.get_provider", return_value=_mock_provider()):
        result = runner.invoke(app, ["--log-level", level, "projects"])
    assert result.exit_code == 0, result.output
