import pulumi
import pulumi_aws as aws

from backend_config import BackendConfig, Configured, Unconfigured


def create_messaging_channels(
    *,
    config: BackendConfig,
    target_provider: aws.Provider,
):
    """
    Creates:
      - Optional SES email identity for the sender address
      - Pinpoint app + SMS channel, unless an existing application id is configured

    Returns:
      (sms_application_id, email_identity_or_none)
    """
    name_prefix = config.name_prefix

    # -------------------------------------------------------------------
    # Email (SES)
    # -------------------------------------------------------------------
    email_identity = None
    if config.manage_email_identity:
        # SES mails a verification link to this address; sends fail until it is clicked
        email_identity = aws.ses.EmailIdentity(
            "senderEmailIdentity",
            email=config.source_email,
            opts=pulumi.ResourceOptions(provider=target_provider),
        )

    # -------------------------------------------------------------------
    # SMS (Pinpoint)
    # -------------------------------------------------------------------
    existing_app = config.pinpoint_application_id
    if isinstance(existing_app, Configured):
        sms_application_id = pulumi.Output.from_input(existing_app.value)
    elif isinstance(existing_app, Unconfigured):
        sms_app = aws.pinpoint.App(
            "smsApp",
            name=f"{name_prefix}-sms",
            opts=pulumi.ResourceOptions(provider=target_provider),
        )
        aws.pinpoint.SmsChannel(
            "smsChannel",
            application_id=sms_app.application_id,
            enabled=True,
            opts=pulumi.ResourceOptions(provider=target_provider),
        )
        sms_application_id = sms_app.application_id
    else:
        raise TypeError(f"Unexpected pinpointApplicationId setting: {existing_app!r}")

    return sms_application_id, email_identity
