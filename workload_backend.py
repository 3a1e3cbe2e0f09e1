from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from backend_config import BackendConfig
from triggers import TriggerSet
from workload_cognito import create_workload_cognito
from workload_lambdas import create_trigger_lambdas, grant_user_pool_access
from workload_messaging import create_messaging_channels


@dataclass
class PasswordlessBackend:
    user_pool: aws.cognito.UserPool
    user_pool_client: aws.cognito.UserPoolClient
    triggers: TriggerSet
    permissions: list[aws.lambda_.Permission]
    post_authentication_policy: aws.iam.RolePolicy
    sms_application_id: pulumi.Output[str]
    email_identity: aws.ses.EmailIdentity | None


def deploy_passwordless_backend(
    *,
    config: BackendConfig,
    target_provider: aws.Provider,
) -> PasswordlessBackend:
    """
    Deploy the passwordless auth backend.

    Order matters only where a value is needed: the SMS application id feeds
    the create-challenge environment, the trigger ARNs feed the user pool, and
    the pool ARN feeds the invoke permissions and the post-auth policy.
    """
    # -------------------------------------------------------------------
    # Notification channels (SES / Pinpoint)
    # -------------------------------------------------------------------
    sms_application_id, email_identity = create_messaging_channels(
        config=config,
        target_provider=target_provider,
    )

    # -------------------------------------------------------------------
    # Trigger lambdas
    # -------------------------------------------------------------------
    triggers, post_authentication_role = create_trigger_lambdas(
        config=config,
        sms_application_id=sms_application_id,
        target_provider=target_provider,
    )

    # -------------------------------------------------------------------
    # Cognito (User Pool / Client)
    # -------------------------------------------------------------------
    user_pool, user_pool_client = create_workload_cognito(
        config=config,
        triggers=triggers,
        target_provider=target_provider,
    )

    # -------------------------------------------------------------------
    # Cognito -> Lambda wiring
    # -------------------------------------------------------------------
    permissions, post_authentication_policy = grant_user_pool_access(
        triggers=triggers,
        user_pool=user_pool,
        post_authentication_role=post_authentication_role,
        target_provider=target_provider,
    )

    return PasswordlessBackend(
        user_pool=user_pool,
        user_pool_client=user_pool_client,
        triggers=triggers,
        permissions=permissions,
        post_authentication_policy=post_authentication_policy,
        sms_application_id=sms_application_id,
        email_identity=email_identity,
    )
