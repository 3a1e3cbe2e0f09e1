"""
Shared helpers for the Cognito custom-auth trigger functions.

This file is packaged next to each trigger module in its deployment archive,
so it only depends on the standard library.
"""
import os

CUSTOM_CHALLENGE = "CUSTOM_CHALLENGE"

CHANNEL_EMAIL = "email"
CHANNEL_SMS = "sms"
CHANNELS = (CHANNEL_EMAIL, CHANNEL_SMS)

_CONTACT_ATTRIBUTES = {
    CHANNEL_EMAIL: "email",
    CHANNEL_SMS: "phone_number",
}


class AuthTriggerError(Exception):
    """Failure that must abort the current authentication attempt."""


class PolicyDecisionError(AuthTriggerError):
    pass


class SecretGenerationError(AuthTriggerError):
    pass


class DispatchError(AuthTriggerError):
    pass


class SignUpDenied(AuthTriggerError):
    pass


class TriggerConfigError(AuthTriggerError):
    pass


# -------------------------------------------------------------------
# Environment
# -------------------------------------------------------------------

def require_env(name: str) -> str:
    value = (os.environ.get(name) or "").strip()
    if not value:
        raise TriggerConfigError(f"Missing environment variable {name}")
    return value


def env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise TriggerConfigError(f"{name} must be an integer, got {raw!r}") from None


def env_bool(name: str, default: bool) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise TriggerConfigError(f"{name} must be a boolean, got {raw!r}")


def env_csv(name: str) -> list[str]:
    raw = os.environ.get(name) or ""
    return [v.strip().lower() for v in raw.split(",") if v.strip()]


# -------------------------------------------------------------------
# Event / identity helpers
# -------------------------------------------------------------------

def user_attributes(event: dict) -> dict:
    return (event.get("request") or {}).get("userAttributes") or {}


def contact_attribute(channel: str) -> str:
    try:
        return _CONTACT_ATTRIBUTES[channel]
    except KeyError:
        raise TriggerConfigError(f"Unknown delivery channel {channel!r}") from None


def select_channel(attributes: dict, preferred: str) -> str:
    """
    Pick the channel a user's one-time codes are delivered through.

    The preferred channel wins whenever the user carries its contact
    attribute; otherwise the other channel is used. A user with neither
    an email nor a phone number cannot receive a code.
    """
    if preferred not in CHANNELS:
        raise TriggerConfigError(f"PREFERRED_CHANNEL must be one of {CHANNELS}, got {preferred!r}")

    order = [preferred] + [c for c in CHANNELS if c != preferred]
    for channel in order:
        if (attributes.get(contact_attribute(channel)) or "").strip():
            return channel

    raise DispatchError("User has neither an email address nor a phone number")


def mask_contact(value: str) -> str:
    value = (value or "").strip()
    if not value:
        return ""
    if "@" in value:
        local, _, domain = value.partition("@")
        return (local[:1] or "*") + "***@" + domain
    return "*" * max(len(value) - 4, 0) + value[-4:]


def request_id(context) -> str:
    return getattr(context, "aws_request_id", "")
