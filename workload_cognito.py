import pulumi
import pulumi_aws as aws

from backend_config import BackendConfig
from triggers import TriggerSet


def create_workload_cognito(
    *,
    config: BackendConfig,
    triggers: TriggerSet,
    target_provider: aws.Provider,
):
    """
    Creates:
      - Cognito User Pool (email/phone sign-in, self sign-up, MFA off,
        custom-auth Lambda triggers)
      - User Pool Client restricted to the custom auth flow (no secret,
        so browser/mobile clients can call InitiateAuth directly)

    Returns:
      (user_pool, user_pool_client)
    """
    name_prefix = config.name_prefix

    # -------------------------------------------------------------------
    # Cognito User Pool
    # -------------------------------------------------------------------
    user_pool = aws.cognito.UserPool(
        "passwordlessUserPool",
        name=f"{name_prefix}-users",
        username_attributes=["email", "phone_number"],
        username_configuration=aws.cognito.UserPoolUsernameConfigurationArgs(
            case_sensitive=False,
        ),
        # Phone-only users sign up without an email, so it cannot be required
        schemas=[aws.cognito.UserPoolSchemaArgs(
            name="email",
            attribute_data_type="String",
            required=False,
            mutable=True,
            string_attribute_constraints=aws.cognito.UserPoolSchemaStringAttributeConstraintsArgs(
                min_length="0",
                max_length="2048",
            ),
        )],
        mfa_configuration="OFF",
        admin_create_user_config=aws.cognito.UserPoolAdminCreateUserConfigArgs(
            allow_admin_create_user_only=False,
        ),
        # Passwords are never used to sign in, only required by Cognito at sign-up
        password_policy=aws.cognito.UserPoolPasswordPolicyArgs(
            minimum_length=8,
            require_lowercase=False,
            require_uppercase=False,
            require_numbers=False,
            require_symbols=False,
        ),
        deletion_protection="INACTIVE",
        lambda_config=triggers.lambda_config_args(),
        opts=pulumi.ResourceOptions(provider=target_provider),
    )

    # -------------------------------------------------------------------
    # Cognito User Pool Client
    # -------------------------------------------------------------------
    user_pool_client = aws.cognito.UserPoolClient(
        "passwordlessClient",
        name=f"{name_prefix}-client",
        user_pool_id=user_pool.id,
        generate_secret=False,
        explicit_auth_flows=[
            "ALLOW_CUSTOM_AUTH",
            "ALLOW_REFRESH_TOKEN_AUTH",
        ],
        opts=pulumi.ResourceOptions(provider=target_provider),
    )

    return user_pool, user_pool_client
