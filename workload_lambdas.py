from dataclasses import dataclass
from pathlib import Path

import pulumi
import pulumi_aws as aws

from backend_config import UNCONFIGURED, BackendConfig, Configured, Unconfigured
from helpers import lambda_log_group_name
from triggers import TriggerSet, TriggerSlot

LAMBDA_SOURCE_DIR = Path(__file__).parent / "lambdas"
SHARED_MODULE = "auth_common"
TRIGGER_RUNTIME = "python3.11"
COGNITO_PRINCIPAL = "cognito-idp.amazonaws.com"


@dataclass(frozen=True)
class TriggerFunction:
    slot: TriggerSlot
    resource_name: str
    module: str
    suffix: str


TRIGGER_FUNCTIONS = (
    TriggerFunction(TriggerSlot.PRE_SIGN_UP, "preSignUpFn", "pre_sign_up", "pre-sign-up"),
    TriggerFunction(TriggerSlot.DEFINE_AUTH_CHALLENGE, "defineAuthChallengeFn", "define_auth_challenge", "define-auth-challenge"),
    TriggerFunction(TriggerSlot.CREATE_AUTH_CHALLENGE, "createAuthChallengeFn", "create_auth_challenge", "create-auth-challenge"),
    TriggerFunction(TriggerSlot.VERIFY_AUTH_CHALLENGE_RESPONSE, "verifyAuthChallengeFn", "verify_auth_challenge", "verify-auth-challenge"),
    TriggerFunction(TriggerSlot.POST_AUTHENTICATION, "postAuthenticationFn", "post_authentication", "post-authentication"),
    TriggerFunction(TriggerSlot.PRE_TOKEN_GENERATION, "preTokenGenerationFn", "pre_token_generation", "pre-token-generation"),
)


def trigger_archive(module: str) -> pulumi.AssetArchive:
    """Deployment package: the trigger module plus the shared helpers it imports."""
    return pulumi.AssetArchive({
        f"{module}.py": pulumi.FileAsset(str(LAMBDA_SOURCE_DIR / f"{module}.py")),
        f"{SHARED_MODULE}.py": pulumi.FileAsset(str(LAMBDA_SOURCE_DIR / f"{SHARED_MODULE}.py")),
    })


def trigger_environment(
    slot: TriggerSlot,
    *,
    config: BackendConfig,
    sms_application_id: pulumi.Input[str],
) -> dict:
    if slot is TriggerSlot.PRE_SIGN_UP:
        return {
            "AUTO_CONFIRM_USERS": "true" if config.auto_confirm_users else "false",
            "ALLOWED_EMAIL_DOMAINS": ",".join(config.allowed_email_domains),
        }

    if slot is TriggerSlot.DEFINE_AUTH_CHALLENGE:
        return {"MAX_CHALLENGE_ATTEMPTS": str(config.max_challenge_attempts)}

    if slot is TriggerSlot.CREATE_AUTH_CHALLENGE:
        env = {
            "SES_FROM_ADDRESS": config.source_email,
            "PINPOINT_APPLICATION_ID": sms_application_id,
            "CODE_LENGTH": str(config.code_length),
            "PREFERRED_CHANNEL": config.preferred_channel,
            "APP_NAME": config.app_name,
        }
        if isinstance(config.origination_number, Configured):
            env["ORIGINATION_NUMBER"] = config.origination_number.value
        elif not isinstance(config.origination_number, Unconfigured):
            raise TypeError(f"Unexpected originationNumber setting: {config.origination_number!r}")
        return env

    if slot is TriggerSlot.VERIFY_AUTH_CHALLENGE_RESPONSE:
        return {}

    if slot is TriggerSlot.POST_AUTHENTICATION:
        return {"PREFERRED_CHANNEL": config.preferred_channel}

    if slot is TriggerSlot.PRE_TOKEN_GENERATION:
        return {"HASURA_DEFAULT_ROLE": "user", "HASURA_ALLOWED_ROLES": "user"}

    raise ValueError(f"Unhandled trigger slot: {slot!r}")


def _lambda_role(resource_name: str, *, target_provider: aws.Provider) -> aws.iam.Role:
    role = aws.iam.Role(
        resource_name,
        assume_role_policy=aws.iam.get_policy_document_output(statements=[
            aws.iam.GetPolicyDocumentStatementArgs(
                actions=["sts:AssumeRole"],
                principals=[aws.iam.GetPolicyDocumentStatementPrincipalArgs(
                    type="Service",
                    identifiers=["lambda.amazonaws.com"],
                )],
            )
        ]).json,
        opts=pulumi.ResourceOptions(provider=target_provider),
    )

    aws.iam.RolePolicyAttachment(
        f"{resource_name}BasicExec",
        role=role.name,
        policy_arn="arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole",
        opts=pulumi.ResourceOptions(provider=target_provider),
    )
    return role


def create_trigger_lambdas(
    *,
    config: BackendConfig,
    sms_application_id: pulumi.Input[str],
    target_provider: aws.Provider,
):
    """
    Creates:
      - Lambda IAM roles (+ basic exec policy)
          - triggerRole: define / verify / pre sign-up / pre token (no AWS calls)
          - createChallengeRole: + ses:SendEmail, mobiletargeting:SendMessages
          - postAuthenticationRole: pool-scoped policy is attached later by
            grant_user_pool_access (the pool ARN does not exist yet)
      - One function + managed log group per trigger
      - preTokenGenerationFn only when hasuraClaims is enabled

    Returns:
      (trigger_set, post_authentication_role)
    """
    name_prefix = config.name_prefix

    # -------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------
    trigger_role = _lambda_role("triggerRole", target_provider=target_provider)
    create_challenge_role = _lambda_role("createChallengeRole", target_provider=target_provider)
    post_authentication_role = _lambda_role("postAuthenticationRole", target_provider=target_provider)

    aws.iam.RolePolicy(
        "createChallengeSendPolicy",
        role=create_challenge_role.id,
        policy=aws.iam.get_policy_document_output(statements=[
            aws.iam.GetPolicyDocumentStatementArgs(
                actions=["ses:SendEmail"],
                resources=["*"],
            ),
            aws.iam.GetPolicyDocumentStatementArgs(
                actions=["mobiletargeting:SendMessages"],
                resources=[pulumi.Output.concat("arn:aws:mobiletargeting:*:*:apps/", sms_application_id, "/*")],
            ),
        ]).json,
        opts=pulumi.ResourceOptions(provider=target_provider),
    )

    roles = {
        TriggerSlot.CREATE_AUTH_CHALLENGE: create_challenge_role,
        TriggerSlot.POST_AUTHENTICATION: post_authentication_role,
    }

    # -------------------------------------------------------------------
    # Functions + log groups
    # -------------------------------------------------------------------
    hooks = {}
    for spec in TRIGGER_FUNCTIONS:
        if spec.slot is TriggerSlot.PRE_TOKEN_GENERATION and not config.hasura_claims:
            hooks[spec.slot] = UNCONFIGURED
            continue

        function_name = f"{name_prefix}-{spec.suffix}"

        # must exist before the first invocation or Lambda creates it without retention
        log_group = aws.cloudwatch.LogGroup(
            f"{spec.resource_name}LogGroup",
            name=lambda_log_group_name(function_name),
            retention_in_days=config.log_retention_days,
            opts=pulumi.ResourceOptions(provider=target_provider),
        )

        fn = aws.lambda_.Function(
            spec.resource_name,
            name=function_name,
            role=roles.get(spec.slot, trigger_role).arn,
            runtime=TRIGGER_RUNTIME,
            handler=f"{spec.module}.handler",
            timeout=config.handler_timeout_seconds,
            code=trigger_archive(spec.module),
            environment=aws.lambda_.FunctionEnvironmentArgs(
                variables=trigger_environment(
                    spec.slot,
                    config=config,
                    sms_application_id=sms_application_id,
                ),
            ),
            opts=pulumi.ResourceOptions(
                provider=target_provider,
                depends_on=[log_group],
            ),
        )
        hooks[spec.slot] = Configured(fn)

    return TriggerSet(hooks=hooks), post_authentication_role


def grant_user_pool_access(
    *,
    triggers: TriggerSet,
    user_pool: aws.cognito.UserPool,
    post_authentication_role: aws.iam.Role,
    target_provider: aws.Provider,
):
    """
    - Lets the user pool invoke every configured trigger
    - Lets the post-authentication trigger update attributes in this pool only

    Returns:
      (invoke_permissions, update_user_policy)
    """
    resource_names = {spec.slot: spec.resource_name for spec in TRIGGER_FUNCTIONS}

    permissions = []
    for slot, fn in triggers.configured():
        permissions.append(aws.lambda_.Permission(
            f"{resource_names[slot]}Invocation",
            action="lambda:InvokeFunction",
            function=fn.name,
            principal=COGNITO_PRINCIPAL,
            source_arn=user_pool.arn,
            opts=pulumi.ResourceOptions(provider=target_provider),
        ))

    update_user_policy = aws.iam.RolePolicy(
        "postAuthenticationUpdateUserPolicy",
        role=post_authentication_role.id,
        policy=aws.iam.get_policy_document_output(statements=[
            aws.iam.GetPolicyDocumentStatementArgs(
                actions=["cognito-idp:AdminUpdateUserAttributes"],
                resources=[user_pool.arn],
            ),
        ]).json,
        opts=pulumi.ResourceOptions(provider=target_provider),
    )

    return permissions, update_user_policy
