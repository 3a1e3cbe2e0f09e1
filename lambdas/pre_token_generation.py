"""
Pre Token Generation trigger (only deployed with hasuraClaims enabled).

Adds the Hasura JWT claims namespace to the ID token.
"""
import json
import os
import traceback

from auth_common import TriggerConfigError, env_csv, request_id, user_attributes

HASURA_CLAIMS_NAMESPACE = "https://hasura.io/jwt/claims"


def hasura_claims(user_id: str, default_role: str, allowed_roles: list[str]) -> dict:
    roles = list(allowed_roles)
    if default_role not in roles:
        roles.insert(0, default_role)
    return {
        "x-hasura-user-id": user_id,
        "x-hasura-default-role": default_role,
        "x-hasura-allowed-roles": roles,
    }


def handler(event, context):
    rid = request_id(context)
    print(f"[pretoken] START rid={rid}")

    try:
        user_id = user_attributes(event).get("sub")
        if not user_id:
            raise TriggerConfigError("Token event carries no sub attribute")

        default_role = (os.environ.get("HASURA_DEFAULT_ROLE") or "").strip() or "user"
        allowed_roles = env_csv("HASURA_ALLOWED_ROLES") or [default_role]
        claims = hasura_claims(user_id, default_role, allowed_roles)

        event.setdefault("response", {})["claimsOverrideDetails"] = {
            "claimsToAddOrOverride": {
                HASURA_CLAIMS_NAMESPACE: json.dumps(claims, separators=(",", ":")),
            },
        }

        print(f"[pretoken] roles={claims['x-hasura-allowed-roles']}")
        print(f"[pretoken] END rid={rid}")
        return event

    except Exception as e:
        print("[pretoken] EXCEPTION:", repr(e))
        print(traceback.format_exc())
        raise
