"""AssumeRoleWithSAML exchange."""

import logging

import boto3
import botocore.exceptions

from okta_aws_session.errors import ExchangeFailed

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
MAX_SESSION_DURATION = 43200  # STS max is 12 h

CREDENTIAL_FIELDS = ("AccessKeyId", "SecretAccessKey", "SessionToken")


def check_credentials(credentials):
    """Raise ExchangeFailed unless all three credential fields are present."""
    if not isinstance(credentials, dict):
        raise ExchangeFailed("STS response did not contain a Credentials object.")
    missing = [f for f in CREDENTIAL_FIELDS if not credentials.get(f)]
    if missing:
        raise ExchangeFailed(f"STS response is missing {', '.join(missing)}.")
    return credentials


class StsExchanger:
    """Exchanges a SAML assertion for temporary credentials through STS.

    *client* is any object with an ``assume_role_with_saml`` method shaped
    like the boto3 STS client's; one is created lazily when not given.
    """

    def __init__(self, client=None, region=None):
        self._client = client
        self.region = region or DEFAULT_REGION

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("sts", region_name=self.region)
        return self._client

    def exchange(self, role_arn, principal_arn, assertion, duration=None):
        """Call AssumeRoleWithSAML once and return the Credentials dict."""
        params = {
            "RoleArn": role_arn,
            "PrincipalArn": principal_arn,
            "SAMLAssertion": assertion,
        }
        if duration:
            params["DurationSeconds"] = min(int(duration), MAX_SESSION_DURATION)

        logger.debug("AssumeRoleWithSAML role=%s principal=%s", role_arn, principal_arn)
        try:
            response = self.client.assume_role_with_saml(**params)
        except botocore.exceptions.ClientError as exc:
            error = exc.response.get("Error", {})
            raise ExchangeFailed(
                f"Failed to assume role {role_arn}: "
                f"({error.get('Code', 'Unknown')}) {error.get('Message', exc)}"
            ) from exc
        except botocore.exceptions.BotoCoreError as exc:
            raise ExchangeFailed(f"Failed to assume role {role_arn}: {exc}") from exc

        return check_credentials((response or {}).get("Credentials"))
