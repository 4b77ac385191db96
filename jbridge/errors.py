"""Error taxonomy and the user-facing messages attached to it."""

ISSUE_KEY_NOT_SPECIFIED = "No issue key is specified."
FILE_NAME_NOT_SPECIFIED = "No file name is specified."
INCORRECT_FILE_PATH = "Incorrect file path."
URL_IS_INCORRECT = "The JIRA URL format is incorrect."
SETTINGS_NOT_SPECIFIED = (
    "Unable to create a JIRA item.\nThe JIRA Integration plugin's settings are not configured or invalid."
)
INCORRECT_PROTOCOL_HINT = "\nPerhaps,  you specified the HTTP protocol in the JIRA URL instead of HTTPS."
INCORRECT_PROTOCOL_ERROR_CODE = "301"


class TrackerError(Exception):
    """Base exception for all bug tracker errors."""

    default_message = "Bug tracker error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotConfigured(TrackerError):
    """Settings are incomplete or no session could be opened."""

    default_message = SETTINGS_NOT_SPECIFIED


class InvalidUrl(TrackerError):
    """The configured tracker URL cannot be parsed."""

    default_message = URL_IS_INCORRECT


class RemoteCallFailed(TrackerError):
    """A call to the tracker failed; the message is the transport error text."""


class UnknownIssueType(TrackerError):
    """No issue type with the requested name exists in the project."""

    def __init__(self, project_key: str, issue_type: str) -> None:
        super().__init__(f"Issue type '{issue_type}' is not available in project '{project_key}'.")
        self.project_key = project_key
        self.issue_type = issue_type


class MissingIssueReference(TrackerError):
    default_message = ISSUE_KEY_NOT_SPECIFIED


class MissingFileName(TrackerError):
    default_message = FILE_NAME_NOT_SPECIFIED


class InvalidFilePath(TrackerError):
    default_message = INCORRECT_FILE_PATH
