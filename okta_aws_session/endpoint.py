"""Validation of Okta AWS app embed links."""

import re

from okta_aws_session.errors import InvalidEndpoint

# https://<label>(.<label>)*/<segment>(/<segment>)*
APP_URI_PATTERN = re.compile(r"^https://[\w-]+(\.[\w-]+)*(/[^/\s]+)+/?$")


def validate_app_uri(app_uri):
    """Check *app_uri* and return the Okta domain it points at.

    e.g. ``https://corp.okta.com/home/amazon_aws/0oa1b2c3/272`` -> ``corp.okta.com``
    """
    if not app_uri or not APP_URI_PATTERN.fullmatch(app_uri):
        raise InvalidEndpoint(
            f"Invalid Okta app URI {app_uri!r}; expected "
            "https://<okta-domain>/home/amazon_aws/<app-id>/<instance>"
        )
    return app_uri.split("/")[2]
