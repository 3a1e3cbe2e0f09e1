"""Unit tests for the pre sign-up, post authentication and pre token triggers."""
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

import post_authentication
import pre_sign_up
import pre_token_generation
from auth_common import SignUpDenied


# ---------------------------------------------------------------------------
# Tests: pre sign-up
# ---------------------------------------------------------------------------

class TestPreSignUp:
    @pytest.fixture(autouse=True)
    def env(self, monkeypatch):
        monkeypatch.delenv("ALLOWED_EMAIL_DOMAINS", raising=False)
        monkeypatch.delenv("AUTO_CONFIRM_USERS", raising=False)

    def test_auto_confirms_by_default(self, make_event, lambda_context):
        event = make_event("PreSignUp_SignUp", {"email": "jo@example.com"})
        out = pre_sign_up.handler(event, lambda_context)
        assert out["response"]["autoConfirmUser"] is True
        assert "autoVerifyEmail" not in out["response"]

    def test_auto_confirm_can_be_disabled(self, make_event, lambda_context, monkeypatch):
        monkeypatch.setenv("AUTO_CONFIRM_USERS", "false")
        out = pre_sign_up.handler(make_event("PreSignUp_SignUp", {"email": "jo@example.com"}), lambda_context)
        assert out["response"]["autoConfirmUser"] is False

    def test_phone_only_candidate_allowed(self, make_event, lambda_context):
        out = pre_sign_up.handler(make_event("PreSignUp_SignUp", {"phone_number": "+447700900123"}), lambda_context)
        assert out["response"]["autoConfirmUser"] is True

    def test_no_contact_denied(self, make_event, lambda_context):
        with pytest.raises(SignUpDenied):
            pre_sign_up.handler(make_event("PreSignUp_SignUp", {"name": "Jo"}), lambda_context)

    def test_domain_allow_list(self, make_event, lambda_context, monkeypatch):
        monkeypatch.setenv("ALLOWED_EMAIL_DOMAINS", "example.com, Corp.Example.com")
        ok = pre_sign_up.handler(make_event("PreSignUp_SignUp", {"email": "Jo@CORP.example.com"}), lambda_context)
        assert ok["response"]["autoConfirmUser"] is True

        with pytest.raises(SignUpDenied, match="other.org"):
            pre_sign_up.handler(make_event("PreSignUp_SignUp", {"email": "jo@other.org"}), lambda_context)

    def test_allow_list_requires_email(self, make_event, lambda_context, monkeypatch):
        monkeypatch.setenv("ALLOWED_EMAIL_DOMAINS", "example.com")
        with pytest.raises(SignUpDenied):
            pre_sign_up.handler(make_event("PreSignUp_SignUp", {"phone_number": "+447700900123"}), lambda_context)


# ---------------------------------------------------------------------------
# Tests: post authentication
# ---------------------------------------------------------------------------

class FakeDirectory:
    """In-memory stand-in for AdminUpdateUserAttributes on one user."""

    def __init__(self, attributes):
        self.attributes = dict(attributes)
        self.calls = 0

    def admin_update_user_attributes(self, UserPoolId, Username, UserAttributes):
        self.calls += 1
        for attr in UserAttributes:
            self.attributes[attr["Name"]] = attr["Value"]
        return {}


class TestPostAuthentication:
    @pytest.fixture(autouse=True)
    def env(self, monkeypatch):
        monkeypatch.delenv("PREFERRED_CHANNEL", raising=False)

    def test_marks_email_verified(self, make_event, lambda_context, monkeypatch):
        cognito = MagicMock()
        monkeypatch.setattr(post_authentication, "cognito", cognito)
        event = make_event("PostAuthentication_Authentication", {"email": "jo@example.com", "email_verified": "false"})

        post_authentication.handler(event, lambda_context)

        cognito.admin_update_user_attributes.assert_called_once_with(
            UserPoolId="us-east-2_TestPool",
            Username="6f1c2d4e-user",
            UserAttributes=[{"Name": "email_verified", "Value": "true"}],
        )

    def test_marks_phone_verified_for_sms_users(self, make_event, lambda_context, monkeypatch):
        cognito = MagicMock()
        monkeypatch.setattr(post_authentication, "cognito", cognito)
        monkeypatch.setenv("PREFERRED_CHANNEL", "sms")
        attrs = {"email": "jo@example.com", "phone_number": "+447700900123"}

        post_authentication.handler(make_event("PostAuthentication_Authentication", attrs), lambda_context)

        update = cognito.admin_update_user_attributes.call_args.kwargs["UserAttributes"]
        assert update == [{"Name": "phone_number_verified", "Value": "true"}]

    def test_already_verified_is_left_alone(self, make_event, lambda_context, monkeypatch):
        cognito = MagicMock()
        monkeypatch.setattr(post_authentication, "cognito", cognito)
        event = make_event("PostAuthentication_Authentication", {"email": "jo@example.com", "email_verified": "true"})
        post_authentication.handler(event, lambda_context)
        cognito.admin_update_user_attributes.assert_not_called()

    def test_repeated_logins_reach_same_state(self, make_event, lambda_context, monkeypatch):
        directory = FakeDirectory({"email": "jo@example.com", "email_verified": "false"})
        monkeypatch.setattr(post_authentication, "cognito", directory)

        post_authentication.handler(make_event("PostAuthentication_Authentication", directory.attributes), lambda_context)
        after_first = dict(directory.attributes)
        post_authentication.handler(make_event("PostAuthentication_Authentication", directory.attributes), lambda_context)

        assert directory.attributes == after_first
        assert directory.attributes["email_verified"] == "true"
        assert directory.calls == 1

    def test_update_failure_propagates(self, make_event, lambda_context, monkeypatch):
        cognito = MagicMock()
        cognito.admin_update_user_attributes.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "denied"}},
            "AdminUpdateUserAttributes",
        )
        monkeypatch.setattr(post_authentication, "cognito", cognito)
        with pytest.raises(ClientError):
            post_authentication.handler(
                make_event("PostAuthentication_Authentication", {"email": "jo@example.com"}),
                lambda_context,
            )


# ---------------------------------------------------------------------------
# Tests: pre token generation (Hasura claims)
# ---------------------------------------------------------------------------

class TestPreTokenGeneration:
    def test_adds_hasura_claims(self, make_event, lambda_context, monkeypatch):
        monkeypatch.delenv("HASURA_DEFAULT_ROLE", raising=False)
        monkeypatch.delenv("HASURA_ALLOWED_ROLES", raising=False)
        event = make_event("TokenGeneration_Authentication", {"sub": "user-sub-1", "email": "jo@example.com"})

        out = pre_token_generation.handler(event, lambda_context)

        raw = out["response"]["claimsOverrideDetails"]["claimsToAddOrOverride"]["https://hasura.io/jwt/claims"]
        assert json.loads(raw) == {
            "x-hasura-user-id": "user-sub-1",
            "x-hasura-default-role": "user",
            "x-hasura-allowed-roles": ["user"],
        }

    def test_default_role_always_allowed(self):
        claims = pre_token_generation.hasura_claims("u1", "viewer", ["editor"])
        assert claims["x-hasura-allowed-roles"] == ["viewer", "editor"]
