import pulumi

from backend_config import load_backend_config
from providers import make_provider
from workload_backend import deploy_passwordless_backend

cfg = pulumi.Config()

# -------------------------------------------------------------------
# Config (validated up front; nothing is declared on a bad config)
# -------------------------------------------------------------------
project = pulumi.get_project()
full_stack = pulumi.get_stack()
stack = full_stack.split("-")[-1]

config = load_backend_config(cfg, stack=stack, project=project)
pulumi.export("stack", stack)
pulumi.export("logRetentionDays", config.log_retention_days)

target_provider = make_provider(
    target_region=config.target_region,
    deploy_role=config.deploy_role,
)

backend = deploy_passwordless_backend(
    config=config,
    target_provider=target_provider,
)

# -------------------------------------------------------------------
# Outputs
# -------------------------------------------------------------------
pulumi.export("userPoolId", backend.user_pool.id)
pulumi.export("userPoolArn", backend.user_pool.arn)
pulumi.export("userPoolClientId", backend.user_pool_client.id)
pulumi.export("smsApplicationId", backend.sms_application_id)
pulumi.export("hasuraClaims", config.hasura_claims)
pulumi.export(
    "triggerFunctionNames",
    {slot.value: fn.name for slot, fn in backend.triggers.configured()},
)
