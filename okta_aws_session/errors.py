"""Exceptions raised by okta-aws-session.

Every failure is terminal for the current invocation; the CLI reports the
message and exits without touching the environment.
"""


class OktaAwsSessionError(Exception):
    """Base class for all okta-aws-session failures."""


class MissingDependency(OktaAwsSessionError):
    """A required external executable or client is not available."""


class ProfileNotFound(OktaAwsSessionError):
    pass


class InvalidEndpoint(OktaAwsSessionError):
    pass


class SessionAcquisitionFailed(OktaAwsSessionError):
    """Okta primary authentication or MFA did not yield a session token."""


class AssertionAcquisitionFailed(OktaAwsSessionError):
    """No SAMLResponse could be obtained from the Okta AWS app."""


class MalformedAssertion(OktaAwsSessionError):
    pass


class NoRolesFound(OktaAwsSessionError):
    pass


class InvalidSelection(OktaAwsSessionError):
    pass


class ExchangeFailed(OktaAwsSessionError):
    """AssumeRoleWithSAML failed or returned incomplete credentials."""
