"""
Pre Sign-Up trigger.

Users prove their contact details through the custom challenge, so accounts
are confirmed up front instead of going through Cognito's verification step.
"""
import traceback

from auth_common import (
    SignUpDenied,
    env_bool,
    env_csv,
    mask_contact,
    request_id,
    user_attributes,
)


def check_candidate(attributes: dict, allowed_domains: list[str]) -> None:
    email = (attributes.get("email") or "").strip().lower()
    phone = (attributes.get("phone_number") or "").strip()

    if not email and not phone:
        raise SignUpDenied("An email address or phone number is required")

    if allowed_domains:
        if not email:
            raise SignUpDenied("An email address is required")
        domain = email.rsplit("@", 1)[-1]
        if domain not in allowed_domains:
            raise SignUpDenied(f"Email domain {domain} is not allowed")


def handler(event, context):
    rid = request_id(context)
    print(f"[presignup] START rid={rid} source={event.get('triggerSource')}")

    try:
        attributes = user_attributes(event)
        check_candidate(attributes, env_csv("ALLOWED_EMAIL_DOMAINS"))

        auto_confirm = env_bool("AUTO_CONFIRM_USERS", True)
        response = event.setdefault("response", {})
        response["autoConfirmUser"] = auto_confirm

        print(f"[presignup] user={mask_contact(attributes.get('email') or '')} auto_confirm={auto_confirm}")
        print(f"[presignup] END rid={rid}")
        return event

    except Exception as e:
        print("[presignup] EXCEPTION:", repr(e))
        print(traceback.format_exc())
        raise
