import os
import shlex
import sys
from unittest import mock

import pytest

from okta_aws_session.errors import ExchangeFailed, MissingDependency
from okta_aws_session.publisher import (
    format_exports,
    publish_credentials,
    run_with_credentials,
)


def test_publish_sets_exactly_three_values(credentials):
    env = {"PATH": "/bin"}
    publish_credentials(credentials, env)
    assert env == {
        "PATH": "/bin",
        "AWS_ACCESS_KEY_ID": credentials["AccessKeyId"],
        "AWS_SECRET_ACCESS_KEY": credentials["SecretAccessKey"],
        "AWS_SESSION_TOKEN": credentials["SessionToken"],
    }


def test_publish_defaults_to_process_environment(credentials):
    with mock.patch.dict(os.environ):
        publish_credentials(credentials)
        assert os.environ["AWS_SESSION_TOKEN"] == credentials["SessionToken"]


def test_incomplete_bundle_leaves_environment_untouched(credentials):
    del credentials["SecretAccessKey"]
    env = {}
    with pytest.raises(ExchangeFailed):
        publish_credentials(credentials, env)
    assert env == {}


def test_sh_exports_are_quoted(credentials):
    lines = format_exports(credentials, "sh").splitlines()
    assert lines[0] == "export AWS_ACCESS_KEY_ID=ASIAEXAMPLE"
    assert shlex.split(lines[2]) == ["export", "AWS_SESSION_TOKEN=token'with quote"]


def test_powershell_exports(credentials):
    lines = format_exports(credentials, "powershell").splitlines()
    assert lines[2] == "$env:AWS_SESSION_TOKEN = 'token''with quote'"


def test_fish_exports(credentials):
    assert format_exports(credentials, "fish").startswith("set -gx AWS_ACCESS_KEY_ID ")


def test_unknown_shell(credentials):
    with pytest.raises(ValueError):
        format_exports(credentials, "cmd")


def test_run_with_credentials_passes_env(credentials):
    with mock.patch("okta_aws_session.publisher.subprocess.call", return_value=3) as call:
        code = run_with_credentials([sys.executable, "-V"], credentials, environ={"HOME": "/x"})
    assert code == 3
    _, kwargs = call.call_args
    assert kwargs["env"]["AWS_ACCESS_KEY_ID"] == credentials["AccessKeyId"]
    assert kwargs["env"]["HOME"] == "/x"
    assert "AWS_ACCESS_KEY_ID" not in os.environ


def test_run_missing_command(credentials):
    with pytest.raises(MissingDependency):
        run_with_credentials(["definitely-not-a-real-command-xyz"], credentials)
