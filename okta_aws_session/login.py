"""The login pipeline: profile -> Okta -> SAML role -> STS credentials."""

import logging

from okta_aws_session.endpoint import validate_app_uri
from okta_aws_session.okta import OktaClient
from okta_aws_session.profiles import resolve_inputs
from okta_aws_session.saml import parse_session_duration, resolve_role
from okta_aws_session.sts import StsExchanger

logger = logging.getLogger(__name__)


def login(mode, okta_credential, mfa_type, mfa_code=None, okta=None,
          exchanger=None, prompt=input, candidates=None, duration=None, out=None):
    """Run the whole exchange and return the STS Credentials dict.

    *okta_credential* is a ``(username, password)`` tuple, or a callable
    returning one; a callable is only invoked once the profile and app URI
    have been validated.

    Each step raises an OktaAwsSessionError subclass on failure, so nothing
    after a failed step is attempted.  The caller publishes the result.
    """
    inputs = resolve_inputs(mode, candidates)
    domain = validate_app_uri(inputs.app_uri)

    if callable(okta_credential):
        okta_credential = okta_credential()
    username, password = okta_credential

    okta = okta or OktaClient(out=out)
    exchanger = exchanger or StsExchanger()

    logger.info("Authenticating to %s as %s", domain, username)
    session_token = okta.get_session_token(domain, username, password, mfa_type,
                                           mfa_code, prompt=prompt)
    assertion = okta.get_saml_assertion(inputs.app_uri, session_token)

    role = resolve_role(assertion, inputs.role_arn, inputs.principal_arn,
                        prompt=prompt, out=out)
    if duration is None:
        duration = parse_session_duration(assertion)

    logger.info("Assuming role %s", role.role_arn)
    return exchanger.exchange(role.role_arn, role.principal_arn, assertion, duration)
