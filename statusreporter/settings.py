"""Feature settings — maps build feature parameters to a configured reporter.

A build feature is configured with a flat ``dict[str, str]`` of parameters.
:func:`resolve_feature` validates it once per feature instance and opens the
GitHub client every task from that feature shares. Any problem is raised as
:class:`~statusreporter.errors.ConfigurationError` before anything is
scheduled.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from statusreporter.errors import ConfigurationError
from statusreporter.github.api import GitHubApi, GitHubApiFactory
from statusreporter.models import AuthenticationType, RemoteTarget, ReportEvent

FEATURE_TYPE = "github-status"

SERVER_KEY = "github_host"
AUTHENTICATION_TYPE_KEY = "github_authentication_type"
USERNAME_KEY = "github_username"
PASSWORD_KEY = "secure:github_password"
ACCESS_TOKEN_KEY = "secure:github_access_token"
REPOSITORY_OWNER_KEY = "github_owner"
REPOSITORY_NAME_KEY = "github_repo"
CONTEXT_KEY = "github_context"
USE_COMMENTS_KEY = "github_comments"
USE_GUEST_URLS_KEY = "github_guest"
REPORT_ON_KEY = "github_report_on"


@dataclass(frozen=True)
class FeatureDescriptor:
    """A build feature as configured on a build type."""

    type: str
    parameters: dict[str, str] = field(default_factory=dict)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class FeatureSettings(BaseModel):
    """Validated view of the feature parameters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    server_url: str | None = Field(default=None, alias=SERVER_KEY, validate_default=True)
    authentication_type: AuthenticationType | None = Field(
        default=None, alias=AUTHENTICATION_TYPE_KEY, validate_default=True
    )
    username: str | None = Field(default=None, alias=USERNAME_KEY)
    password: str | None = Field(default=None, alias=PASSWORD_KEY)
    access_token: str | None = Field(default=None, alias=ACCESS_TOKEN_KEY)
    owner: str | None = Field(default=None, alias=REPOSITORY_OWNER_KEY, validate_default=True)
    repo: str | None = Field(default=None, alias=REPOSITORY_NAME_KEY, validate_default=True)
    context: str | None = Field(default=None, alias=CONTEXT_KEY)
    add_comments: bool = Field(default=False, alias=USE_COMMENTS_KEY)
    use_guest_urls: bool = Field(default=False, alias=USE_GUEST_URLS_KEY)
    report_on: ReportEvent = Field(default=ReportEvent.ON_START_AND_FINISH, alias=REPORT_ON_KEY)

    @field_validator("server_url")
    @classmethod
    def _require_server_url(cls, value: str | None) -> str:
        if _blank(value):
            raise ValueError("Failed to read GitHub URL from the feature settings")
        return value.strip()

    @field_validator("authentication_type", mode="before")
    @classmethod
    def _parse_authentication_type(cls, value: object) -> AuthenticationType:
        if isinstance(value, AuthenticationType):
            return value
        raw = value.strip().lower() if isinstance(value, str) else ""
        try:
            return AuthenticationType(raw)
        except ValueError:
            allowed = ", ".join(t.value for t in AuthenticationType)
            raise ValueError(
                f"Failed to parse authentication type {value!r}, expected one of: {allowed}"
            ) from None

    @field_validator("owner", "repo")
    @classmethod
    def _require_repository(cls, value: str | None) -> str:
        if _blank(value):
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("context", mode="before")
    @classmethod
    def _optional_context(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("add_comments", "use_guest_urls", mode="before")
    @classmethod
    def _parse_flag(cls, value: object) -> bool:
        # A flag is set when its parameter has any non-blank value.
        if isinstance(value, bool):
            return value
        return isinstance(value, str) and bool(value.strip())

    @field_validator("report_on", mode="before")
    @classmethod
    def _parse_report_on(cls, value: object) -> ReportEvent:
        if isinstance(value, ReportEvent):
            return value
        if value is None or (isinstance(value, str) and not value.strip()):
            return ReportEvent.ON_START_AND_FINISH
        raw = value.strip().lower() if isinstance(value, str) else ""
        try:
            return ReportEvent(raw)
        except ValueError:
            allowed = ", ".join(e.value for e in ReportEvent)
            raise ValueError(
                f"Failed to parse report event {value!r}, expected one of: {allowed}"
            ) from None

    @model_validator(mode="after")
    def _require_credentials(self) -> FeatureSettings:
        if self.authentication_type is AuthenticationType.PASSWORD and _blank(self.username):
            raise ValueError(f"{USERNAME_KEY} is required for password authentication")
        if self.authentication_type is AuthenticationType.TOKEN and _blank(self.access_token):
            raise ValueError(f"{ACCESS_TOKEN_KEY} is required for token authentication")
        return self

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, str]) -> FeatureSettings:
        """Validate *parameters*, raising :class:`ConfigurationError` on failure."""
        try:
            return cls.model_validate(dict(parameters))
        except ValidationError as exc:
            raise ConfigurationError(_format_errors(exc)) from exc


@dataclass(frozen=True)
class ResolvedFeature:
    """Everything the reporter needs from one configured feature."""

    api: GitHubApi
    target: RemoteTarget
    report_event: ReportEvent
    add_comments: bool = False
    use_guest_urls: bool = False

    @property
    def should_report_on_start(self) -> bool:
        return self.report_event.reports_start

    @property
    def should_report_on_finish(self) -> bool:
        return self.report_event.reports_finish


def open_api(settings: FeatureSettings, factory: GitHubApiFactory) -> GitHubApi:
    """Open the GitHub client for the configured authentication variant."""
    if settings.authentication_type is AuthenticationType.PASSWORD:
        return factory.open_for_user(
            settings.server_url, settings.username or "", settings.password or ""
        )
    if settings.authentication_type is AuthenticationType.TOKEN:
        return factory.open_for_token(settings.server_url, settings.access_token or "")
    raise ConfigurationError(f"Failed to parse authentication type: {settings.authentication_type}")


def resolve_feature(parameters: Mapping[str, str], factory: GitHubApiFactory) -> ResolvedFeature:
    """Resolve feature *parameters* into a client handle, target and flags."""
    settings = FeatureSettings.from_parameters(parameters)
    return ResolvedFeature(
        api=open_api(settings, factory),
        target=RemoteTarget(owner=settings.owner, repo=settings.repo, context=settings.context),
        report_event=settings.report_on,
        add_comments=settings.add_comments,
        use_guest_urls=settings.use_guest_urls,
    )


def _format_errors(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        loc = " → ".join(_parameter_key(part) for part in err["loc"]) or "settings"
        msg = err["msg"].removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}")
    return "; ".join(messages)


def _parameter_key(part: int | str) -> str:
    # Errors name the parameter key, never the Python field.
    field_info = FeatureSettings.model_fields.get(part) if isinstance(part, str) else None
    if field_info is not None and field_info.alias:
        return field_info.alias
    return str(part)
