from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pulumi_aws as aws

from backend_config import Configured, Unconfigured


class TriggerSlot(Enum):
    """
    Every Cognito Lambda trigger this backend can attach.

    The value is the matching argument name on UserPoolLambdaConfigArgs.
    """
    PRE_SIGN_UP = "pre_sign_up"
    DEFINE_AUTH_CHALLENGE = "define_auth_challenge"
    CREATE_AUTH_CHALLENGE = "create_auth_challenge"
    VERIFY_AUTH_CHALLENGE_RESPONSE = "verify_auth_challenge_response"
    POST_AUTHENTICATION = "post_authentication"
    PRE_TOKEN_GENERATION = "pre_token_generation"


# Without these the custom auth flow cannot run.
REQUIRED_SLOTS = frozenset({
    TriggerSlot.PRE_SIGN_UP,
    TriggerSlot.DEFINE_AUTH_CHALLENGE,
    TriggerSlot.CREATE_AUTH_CHALLENGE,
    TriggerSlot.VERIFY_AUTH_CHALLENGE_RESPONSE,
    TriggerSlot.POST_AUTHENTICATION,
})


@dataclass(frozen=True)
class TriggerSet:
    """
    Explicit hook assignment for the user pool: one entry per TriggerSlot,
    each either Configured(function) or Unconfigured.
    """
    hooks: dict[TriggerSlot, Configured[aws.lambda_.Function] | Unconfigured]

    def __post_init__(self):
        missing = [slot.name for slot in TriggerSlot if slot not in self.hooks]
        if missing:
            raise ValueError(f"Trigger slots without an assignment: {missing}")

        unconfigured = [
            slot.name for slot in TriggerSlot
            if slot in REQUIRED_SLOTS and not isinstance(self.hooks[slot], Configured)
        ]
        if unconfigured:
            raise ValueError(f"Required trigger slots left unconfigured: {unconfigured}")

    def configured(self) -> list[tuple[TriggerSlot, aws.lambda_.Function]]:
        out = []
        for slot in TriggerSlot:
            hook = self.hooks[slot]
            if isinstance(hook, Configured):
                out.append((slot, hook.value))
            elif isinstance(hook, Unconfigured):
                continue
            else:
                raise TypeError(f"{slot.name}: expected Configured or Unconfigured, got {hook!r}")
        return out

    def lambda_config_args(self) -> aws.cognito.UserPoolLambdaConfigArgs:
        return aws.cognito.UserPoolLambdaConfigArgs(
            **{slot.value: fn.arn for slot, fn in self.configured()}
        )
