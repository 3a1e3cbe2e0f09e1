"""
Define Auth Challenge trigger.

Looks at the session history Cognito hands us and decides whether to issue
another CUSTOM_CHALLENGE, issue tokens, or fail the attempt.
"""
import traceback
from enum import Enum

from auth_common import (
    CUSTOM_CHALLENGE,
    PolicyDecisionError,
    env_int,
    mask_contact,
    request_id,
    user_attributes,
)

DEFAULT_MAX_ATTEMPTS = 3


class Decision(str, Enum):
    ISSUE_CHALLENGE = "ISSUE_CHALLENGE"
    SUCCEED = "SUCCEED"
    FAIL = "FAIL"


def _attempt_results(history) -> list[bool]:
    if not isinstance(history, list):
        raise PolicyDecisionError(f"Session history must be a list, got {type(history).__name__}")

    results = []
    for position, entry in enumerate(history):
        if not isinstance(entry, dict):
            raise PolicyDecisionError(f"Session entry {position} is not a mapping")

        name = entry.get("challengeName")
        if name != CUSTOM_CHALLENGE:
            raise PolicyDecisionError(f"Session entry {position} has unexpected challenge {name!r}")

        result = entry.get("challengeResult")
        if not isinstance(result, bool):
            raise PolicyDecisionError(f"Session entry {position} has no boolean challengeResult")

        results.append(result)
    return results


def decide(history, max_attempts: int) -> Decision:
    if max_attempts < 1:
        raise PolicyDecisionError(f"max_attempts must be at least 1, got {max_attempts}")

    results = _attempt_results(history)

    if not results:
        return Decision.ISSUE_CHALLENGE
    if results[-1]:
        return Decision.SUCCEED
    if len(results) >= max_attempts:
        return Decision.FAIL
    return Decision.ISSUE_CHALLENGE


def apply_decision(response: dict, decision: Decision) -> None:
    response["issueTokens"] = decision is Decision.SUCCEED
    response["failAuthentication"] = decision is Decision.FAIL
    if decision is Decision.ISSUE_CHALLENGE:
        response["challengeName"] = CUSTOM_CHALLENGE
    else:
        response.pop("challengeName", None)


def handler(event, context):
    rid = request_id(context)
    print(f"[define] START rid={rid}")

    try:
        request = event.get("request") or {}
        history = request.get("session")
        if history is None:
            history = []

        who = mask_contact(user_attributes(event).get("email") or event.get("userName") or "")
        max_attempts = env_int("MAX_CHALLENGE_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)

        if request.get("userNotFound"):
            decision = Decision.FAIL
            print("[define] user not found -> FAIL")
        else:
            decision = decide(history, max_attempts)

        attempts = len(history) if isinstance(history, list) else "?"
        print(f"[define] user={who} attempts={attempts} max={max_attempts} decision={decision.value}")

        apply_decision(event.setdefault("response", {}), decision)
        print(f"[define] END rid={rid}")
        return event

    except Exception as e:
        print("[define] EXCEPTION:", repr(e))
        print(traceback.format_exc())
        raise
