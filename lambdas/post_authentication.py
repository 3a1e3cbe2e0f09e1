"""
Post Authentication trigger.

A successful custom challenge proves the user controls the contact the code
went to, so that contact is flagged as verified on the user record.
"""
import os
import traceback

import boto3

from auth_common import (
    CHANNEL_EMAIL,
    contact_attribute,
    mask_contact,
    request_id,
    select_channel,
    user_attributes,
)

cognito = boto3.client("cognito-idp")


def verified_flag(attributes: dict, preferred: str) -> str:
    channel = select_channel(attributes, preferred)
    return f"{contact_attribute(channel)}_verified"


def handler(event, context):
    rid = request_id(context)
    print(f"[postauth] START rid={rid}")

    try:
        attributes = user_attributes(event)
        preferred = (os.environ.get("PREFERRED_CHANNEL") or CHANNEL_EMAIL).strip().lower()
        flag = verified_flag(attributes, preferred)
        who = mask_contact(attributes.get("email") or event.get("userName") or "")

        if (attributes.get(flag) or "").lower() == "true":
            print(f"[postauth] user={who} {flag} already true")
        else:
            cognito.admin_update_user_attributes(
                UserPoolId=event["userPoolId"],
                Username=event["userName"],
                UserAttributes=[{"Name": flag, "Value": "true"}],
            )
            print(f"[postauth] user={who} set {flag}=true")

        print(f"[postauth] END rid={rid}")
        return event

    except Exception as e:
        print("[postauth] EXCEPTION:", repr(e))
        print(traceback.format_exc())
        raise
