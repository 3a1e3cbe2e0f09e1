"""
Verify Auth Challenge Response trigger.

Compares the answer the user submitted with the code the create trigger
stored in privateChallengeParameters. Never logs either value.
"""
import hmac
import traceback

from auth_common import mask_contact, request_id, user_attributes


def answer_matches(expected, provided) -> bool:
    if not isinstance(expected, str) or not isinstance(provided, str):
        return False
    if not expected or not provided:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def handler(event, context):
    rid = request_id(context)
    print(f"[verify] START rid={rid}")

    try:
        request = event.get("request") or {}
        expected = (request.get("privateChallengeParameters") or {}).get("answer")
        provided = request.get("challengeAnswer")

        correct = answer_matches(expected, provided)
        event.setdefault("response", {})["answerCorrect"] = correct

        who = mask_contact(user_attributes(event).get("email") or event.get("userName") or "")
        print(f"[verify] user={who} answer_correct={correct}")
        print(f"[verify] END rid={rid}")
        return event

    except Exception as e:
        print("[verify] EXCEPTION:", repr(e))
        print(traceback.format_exc())
        raise
