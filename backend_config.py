from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import pulumi

from helpers import csv_values, stack_name_prefix

T = TypeVar("T")

CHANNELS = ("email", "sms")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_E164_RE = re.compile(r"^\+[1-9]\d{6,14}$")


class ConfigValidationError(Exception):
    """Raised before any resource is declared when stack config is unusable."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Invalid stack configuration:\n" + "\n".join(f"  - {p}" for p in self.problems))


# -------------------------------------------------------------------
# Optional settings
# -------------------------------------------------------------------

@dataclass(frozen=True)
class Configured(Generic[T]):
    value: T


@dataclass(frozen=True)
class Unconfigured:
    pass


UNCONFIGURED = Unconfigured()


def optional_setting(cfg: pulumi.Config, key: str) -> Configured[str] | Unconfigured:
    raw = (cfg.get(key) or "").strip()
    if raw:
        return Configured(raw)
    return UNCONFIGURED


@dataclass(frozen=True)
class DeployRole:
    account_id: str
    role_name: str

    @property
    def arn(self) -> str:
        return f"arn:aws:iam::{self.account_id}:role/{self.role_name}"


@dataclass(frozen=True)
class BackendConfig:
    stack: str
    name_prefix: str
    target_region: str
    source_email: str
    origination_number: Configured[str] | Unconfigured = UNCONFIGURED
    pinpoint_application_id: Configured[str] | Unconfigured = UNCONFIGURED
    deploy_role: Configured[DeployRole] | Unconfigured = UNCONFIGURED
    hasura_claims: bool = False
    max_challenge_attempts: int = 3
    code_length: int = 6
    preferred_channel: str = "email"
    auto_confirm_users: bool = True
    allowed_email_domains: list[str] = field(default_factory=list)
    manage_email_identity: bool = False
    app_name: str = "Passwordless"
    log_retention_days: int = 7
    handler_timeout_seconds: int = 10


def _get_int(cfg: pulumi.Config, key: str, default: int, problems: list[str]) -> int:
    try:
        value = cfg.get_int(key)
    except pulumi.ConfigTypeError as e:
        problems.append(f"{key} must be an integer: {e}")
        return default
    return default if value is None else value


def _get_bool(cfg: pulumi.Config, key: str, default: bool, problems: list[str]) -> bool:
    try:
        value = cfg.get_bool(key)
    except pulumi.ConfigTypeError as e:
        problems.append(f"{key} must be true or false: {e}")
        return default
    return default if value is None else value


def load_backend_config(cfg: pulumi.Config, *, stack: str, project: str) -> BackendConfig:
    """
    Read and validate every stack setting.

    All problems are collected and raised together as ConfigValidationError,
    so a missing sourceEmail stops the deployment instead of producing an
    empty stack.
    """
    problems: list[str] = []

    source_email = (cfg.get("sourceEmail") or "").strip()
    if not source_email:
        problems.append("sourceEmail is required (SES sender address for sign-in codes)")
    elif not _EMAIL_RE.match(source_email):
        problems.append(f"sourceEmail does not look like an email address: {source_email!r}")

    origination_number = optional_setting(cfg, "originationNumber")
    if isinstance(origination_number, Configured) and not _E164_RE.match(origination_number.value):
        problems.append(f"originationNumber must be in E.164 format, got {origination_number.value!r}")

    pinpoint_application_id = optional_setting(cfg, "pinpointApplicationId")

    account_id = optional_setting(cfg, "accountId")
    role_name = optional_setting(cfg, "deployRoleName")
    if isinstance(account_id, Configured) and isinstance(role_name, Configured):
        deploy_role: Configured[DeployRole] | Unconfigured = Configured(
            DeployRole(account_id=account_id.value, role_name=role_name.value)
        )
    elif isinstance(account_id, Unconfigured) and isinstance(role_name, Unconfigured):
        deploy_role = UNCONFIGURED
    else:
        problems.append("accountId and deployRoleName must be set together")
        deploy_role = UNCONFIGURED

    max_attempts = _get_int(cfg, "maxChallengeAttempts", 3, problems)
    if max_attempts < 1:
        problems.append(f"maxChallengeAttempts must be at least 1, got {max_attempts}")

    code_length = _get_int(cfg, "codeLength", 6, problems)
    if not 4 <= code_length <= 10:
        problems.append(f"codeLength must be between 4 and 10, got {code_length}")

    preferred_channel = (cfg.get("preferredChannel") or "email").strip().lower()
    if preferred_channel not in CHANNELS:
        problems.append(f"preferredChannel must be one of {', '.join(CHANNELS)}, got {preferred_channel!r}")

    log_retention_days = _get_int(cfg, "logRetentionDays", 7, problems)
    handler_timeout_seconds = _get_int(cfg, "handlerTimeoutSeconds", 10, problems)
    if not 1 <= handler_timeout_seconds <= 900:
        problems.append(f"handlerTimeoutSeconds must be between 1 and 900, got {handler_timeout_seconds}")

    hasura_claims = _get_bool(cfg, "hasuraClaims", False, problems)
    auto_confirm_users = _get_bool(cfg, "autoConfirmUsers", True, problems)
    manage_email_identity = _get_bool(cfg, "manageEmailIdentity", False, problems)

    name_prefix = stack_name_prefix(cfg.get("namePrefix") or project, stack)
    if not name_prefix:
        problems.append("namePrefix (or the project name) must contain letters or digits")

    if problems:
        raise ConfigValidationError(problems)

    return BackendConfig(
        stack=stack,
        name_prefix=name_prefix,
        target_region=(cfg.get("targetRegion") or "us-east-2").strip(),
        source_email=source_email,
        origination_number=origination_number,
        pinpoint_application_id=pinpoint_application_id,
        deploy_role=deploy_role,
        hasura_claims=hasura_claims,
        max_challenge_attempts=max_attempts,
        code_length=code_length,
        preferred_channel=preferred_channel,
        auto_confirm_users=auto_confirm_users,
        allowed_email_domains=csv_values(cfg.get("allowedEmailDomains")),
        manage_email_identity=manage_email_identity,
        app_name=(cfg.get("appName") or "Passwordless").strip(),
        log_retention_days=log_retention_days,
        handler_timeout_seconds=handler_timeout_seconds,
    )
