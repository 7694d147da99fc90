"""Pytest configuration and shared fixtures."""

import base64

import pytest

ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"
DURATION_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/SessionDuration"

SAML_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<saml2p:Response xmlns:saml2p="urn:oasis:names:tc:SAML:2.0:protocol"
    xmlns:saml2="urn:oasis:names:tc:SAML:2.0:assertion">
  <saml2:Assertion>
    <saml2:AttributeStatement>
      {attributes}
    </saml2:AttributeStatement>
  </saml2:Assertion>
</saml2p:Response>"""


def _attribute(name, values):
    body = "".join(f"<saml2:AttributeValue>{v}</saml2:AttributeValue>" for v in values)
    return f'<saml2:Attribute Name="{name}">{body}</saml2:Attribute>'


@pytest.fixture(scope="function", autouse=True)
def isolate_environment(monkeypatch):
    """Keep the developer's AWS credentials out of every test."""
    for var in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "AWS_PROFILE",
        "AWS_DEFAULT_REGION",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def make_assertion():
    """Return a builder for base64 SAML responses with the given role values."""

    def build(role_values, duration=None):
        attributes = [_attribute(ROLE_ATTRIBUTE, role_values)]
        if duration is not None:
            attributes.append(_attribute(DURATION_ATTRIBUTE, [duration]))
        xml = SAML_TEMPLATE.format(attributes="".join(attributes))
        return base64.b64encode(xml.encode("utf-8")).decode("ascii")

    return build


@pytest.fixture
def credentials():
    return {
        "AccessKeyId": "ASIAEXAMPLE",
        "SecretAccessKey": "secret/with+chars",
        "SessionToken": "token'with quote",
    }


@pytest.fixture
def profiles_csv(tmp_path):
    """Write a profiles file and return its path."""
    path = tmp_path / "okta-aws-profiles.csv"
    path.write_text(
        "Name,OktaAppURI,RoleARN,PrincipalARN\n"
        "Dev,https://corp.okta.com/home/amazon_aws/0oa1/272,"
        "arn:aws:iam::123456789012:role/Dev,arn:aws:iam::123456789012:saml-provider/Okta\n"
        "prod,https://corp.okta.com/home/amazon_aws/0oa2/272,,\n",
        encoding="utf-8",
    )
    return path
