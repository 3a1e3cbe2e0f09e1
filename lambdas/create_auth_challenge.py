"""
Create Auth Challenge trigger.

Generates a numeric one-time code, keeps it in privateChallengeParameters for
the verify trigger, and delivers it by email (SES) or SMS (Pinpoint).
"""
import os
import secrets
import traceback

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from auth_common import (
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    DispatchError,
    SecretGenerationError,
    TriggerConfigError,
    contact_attribute,
    env_int,
    mask_contact,
    request_id,
    require_env,
    select_channel,
    user_attributes,
)

DEFAULT_CODE_LENGTH = 6

ses = boto3.client("ses")
pinpoint = boto3.client("pinpoint")


def generate_code(length: int) -> str:
    if length < 1:
        raise SecretGenerationError(f"Code length must be positive, got {length}")
    try:
        return "".join(str(secrets.randbelow(10)) for _ in range(length))
    except (OSError, NotImplementedError) as e:
        raise SecretGenerationError(f"Could not draw random digits: {e}") from e


def _message_text(code: str) -> str:
    app_name = (os.environ.get("APP_NAME") or "").strip() or "Passwordless"
    return f"Your {app_name} sign-in code is {code}"


def send_email(recipient: str, code: str) -> None:
    source = require_env("SES_FROM_ADDRESS")
    text = _message_text(code)
    try:
        ses.send_email(
            Source=source,
            Destination={"ToAddresses": [recipient]},
            Message={
                "Subject": {"Data": "Your sign-in code", "Charset": "UTF-8"},
                "Body": {
                    "Text": {"Data": text, "Charset": "UTF-8"},
                    "Html": {"Data": f"<html><body><p>{text}</p></body></html>", "Charset": "UTF-8"},
                },
            },
        )
    except (BotoCoreError, ClientError) as e:
        raise DispatchError(f"SES send failed: {e}") from e


def send_sms(phone_number: str, code: str) -> None:
    application_id = require_env("PINPOINT_APPLICATION_ID")
    origination_number = (os.environ.get("ORIGINATION_NUMBER") or "").strip()

    sms_message = {
        "Body": _message_text(code),
        "MessageType": "TRANSACTIONAL",
    }
    # only needed when sending to US numbers
    if origination_number:
        sms_message["OriginationNumber"] = origination_number

    try:
        resp = pinpoint.send_messages(
            ApplicationId=application_id,
            MessageRequest={
                "Addresses": {phone_number: {"ChannelType": "SMS"}},
                "MessageConfiguration": {"SMSMessage": sms_message},
            },
        )
    except (BotoCoreError, ClientError) as e:
        raise DispatchError(f"Pinpoint send failed: {e}") from e

    result = ((resp.get("MessageResponse") or {}).get("Result") or {}).get(phone_number) or {}
    status = result.get("DeliveryStatus")
    if status != "SUCCESSFUL":
        raise DispatchError(
            f"Pinpoint delivery status {status!r}: {result.get('StatusMessage') or 'no status message'}"
        )


def handler(event, context):
    rid = request_id(context)
    print(f"[create] START rid={rid}")

    try:
        attributes = user_attributes(event)
        preferred = (os.environ.get("PREFERRED_CHANNEL") or CHANNEL_EMAIL).strip().lower()
        channel = select_channel(attributes, preferred)
        destination = attributes[contact_attribute(channel)].strip()

        code = generate_code(env_int("CODE_LENGTH", DEFAULT_CODE_LENGTH))

        response = event.setdefault("response", {})
        if not isinstance(response, dict):
            raise SecretGenerationError("Event response is not a mapping; cannot store the code")
        response["privateChallengeParameters"] = {"answer": code}
        response["publicChallengeParameters"] = {
            "channel": channel,
            "destination": mask_contact(destination),
        }
        response["challengeMetadata"] = f"CODE_SENT_{channel.upper()}"

        session = (event.get("request") or {}).get("session") or []
        print(f"[create] channel={channel} to={mask_contact(destination)} previous_attempts={len(session)}")

        if channel == CHANNEL_EMAIL:
            send_email(destination, code)
        elif channel == CHANNEL_SMS:
            send_sms(destination, code)
        else:
            raise TriggerConfigError(f"Unhandled channel {channel!r}")

        print(f"[create] END rid={rid}")
        return event

    except Exception as e:
        print("[create] EXCEPTION:", repr(e))
        print(traceback.format_exc())
        raise
