"""
Delivery of temporary credentials to the caller's environment.

Credentials only ever live in process environments.  A process cannot change
its parent shell, so the CLI either prints ``eval``-able export lines or runs
a child command with the variables set.
"""

import logging
import os
import shlex
import shutil
import subprocess

from okta_aws_session.errors import MissingDependency
from okta_aws_session.sts import check_credentials

logger = logging.getLogger(__name__)

ENV_VARS = {
    "AccessKeyId": "AWS_ACCESS_KEY_ID",
    "SecretAccessKey": "AWS_SECRET_ACCESS_KEY",
    "SessionToken": "AWS_SESSION_TOKEN",
}

SHELLS = ("sh", "fish", "powershell")


def publish_credentials(credentials, environ=None):
    """Set the AWS credential variables in *environ* (default os.environ).

    All fields are validated before the first variable is written, so a bad
    bundle leaves *environ* untouched.
    """
    check_credentials(credentials)
    if environ is None:
        environ = os.environ
    for field, var in ENV_VARS.items():
        environ[var] = credentials[field]
    logger.debug("Published %s", ", ".join(ENV_VARS.values()))
    return environ


def format_exports(credentials, shell="sh"):
    """Return shell statements that export *credentials*."""
    check_credentials(credentials)
    lines = []
    for field, var in ENV_VARS.items():
        value = credentials[field]
        if shell == "sh":
            lines.append(f"export {var}={shlex.quote(value)}")
        elif shell == "fish":
            lines.append(f"set -gx {var} {shlex.quote(value)}")
        elif shell == "powershell":
            escaped = value.replace("'", "''")
            lines.append(f"$env:{var} = '{escaped}'")
        else:
            raise ValueError(f"Unsupported shell {shell!r}; choose from {', '.join(SHELLS)}")
    return "\n".join(lines)


def run_with_credentials(command, credentials, environ=None):
    """Run *command* with the credentials in its environment; return its exit code."""
    if not command:
        raise ValueError("No command given.")
    if shutil.which(command[0]) is None:
        raise MissingDependency(f"Command not found: {command[0]}")

    env = dict(os.environ if environ is None else environ)
    publish_credentials(credentials, env)
    logger.debug("Running %s", command[0])
    return subprocess.call(command, env=env)
