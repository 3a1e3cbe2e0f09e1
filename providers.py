import pulumi_aws as aws

from backend_config import Configured, DeployRole, Unconfigured


def make_provider(
    *,
    target_region: str,
    deploy_role: Configured[DeployRole] | Unconfigured,
) -> aws.Provider:
    """
    Create the AWS provider every resource in this project is deployed with.

    - With a deploy role configured, the provider assumes it in the target account.
    - Without one, the ambient credentials are used as-is.
    """
    if isinstance(deploy_role, Configured):
        return aws.Provider(
            "target",
            assume_roles=[{
                "roleArn": deploy_role.value.arn,
                "sessionName": "pulumi",
            }],
            region=target_region,
        )

    if isinstance(deploy_role, Unconfigured):
        return aws.Provider("target", region=target_region)

    raise TypeError(f"Unexpected deploy role setting: {deploy_role!r}")
