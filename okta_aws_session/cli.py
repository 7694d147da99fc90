"""
okta-aws-session command line entry point.

Typical use::

    eval "$(okta-aws-session --profile-name dev)"
    okta-aws-session --app-uri https://corp.okta.com/home/amazon_aws/0oa1/272 -- aws s3 ls
"""

import argparse
import getpass
import logging
import sys

from okta_aws_session.errors import OktaAwsSessionError
from okta_aws_session.login import login
from okta_aws_session.okta import MFA_FACTOR_TYPES
from okta_aws_session.profiles import DEFAULT_CONFIG_PATH, ManualMode, ProfileMode, load_config
from okta_aws_session.publisher import SHELLS, format_exports, run_with_credentials
from okta_aws_session.sts import DEFAULT_REGION, StsExchanger

logger = logging.getLogger(__name__)

DEFAULT_MFA_TYPE = "push"

# Third-party loggers that dump request/response bodies (SAML assertion,
# session token, secret key) at DEBUG.
QUIET_LOGGERS = ("boto3", "botocore", "urllib3", "requests")


def _build_parser():
    parser = argparse.ArgumentParser(
        prog="okta-aws-session",
        description="Get temporary AWS credentials for this shell via Okta SAML.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  eval "$(okta-aws-session --profile-name dev)"
  okta-aws-session --app-uri https://corp.okta.com/home/amazon_aws/0oa1/272
  okta-aws-session --profile-name dev -- aws sts get-caller-identity
""",
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--profile-name",
                        help="Profile from okta-aws-profiles.csv")
    target.add_argument("--app-uri",
                        help="Okta AWS app embed link URL")
    parser.add_argument("--role-arn", help="Role to assume (skips the role prompt)")
    parser.add_argument("--principal-arn", help="SAML provider ARN for --role-arn")
    parser.add_argument("--username", help="Okta username (overrides config)")
    parser.add_argument("--mfa-type", choices=sorted(MFA_FACTOR_TYPES),
                        help=f"MFA factor to use (default: {DEFAULT_MFA_TYPE})")
    parser.add_argument("--mfa-code", help="One-time code for totp/sms/call")
    parser.add_argument("--region", help=f"STS region (default: {DEFAULT_REGION})")
    parser.add_argument("--duration", type=int,
                        help="Session duration in seconds (default: from SAML / 3600)")
    parser.add_argument("--shell", choices=SHELLS, default="sh",
                        help="Syntax of the printed export lines (default: sh)")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help="Path to settings file (default: ~/.okta-aws)")
    parser.add_argument("--debug", action="store_true",
                        help="Print verbose debug information")
    parser.add_argument("command", nargs=argparse.REMAINDER,
                        help="Command to run with the credentials (after --)")
    return parser


def _prompt(text):
    """input() that keeps the prompt off stdout, which may be captured by eval."""
    print(text, end="", file=sys.stderr, flush=True)
    return input()


def _configure_logging(debug):
    """Send log output to stderr; --debug only raises this package's loggers."""
    logging.basicConfig(
        level=logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("okta_aws_session").setLevel(logging.DEBUG if debug else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _parse_duration(value):
    if value is None or value == "":
        return None
    try:
        duration = int(value)
    except ValueError:
        raise OktaAwsSessionError(f"Invalid duration {value!r}: expected seconds.") from None
    if duration <= 0:
        raise OktaAwsSessionError(f"Invalid duration {value!r}: must be positive.")
    return duration


def _mode_from_args(args):
    if args.profile_name:
        return ProfileMode(args.profile_name, args.role_arn, args.principal_arn)
    return ManualMode(args.app_uri, args.role_arn, args.principal_arn)


def main(argv=None):
    args = _build_parser().parse_args(argv)

    _configure_logging(args.debug)

    cfg = load_config(args.config)
    sec = "default"

    def cf(key, arg_val, fallback=None):
        """Return arg_val if set, else config value, else fallback."""
        if arg_val is not None:
            return arg_val
        if cfg.has_section(sec) and cfg.has_option(sec, key):
            return cfg.get(sec, key)
        return fallback

    username = cf("username", args.username)
    region = cf("region", args.region, DEFAULT_REGION)
    mfa_type = cf("mfa_type", args.mfa_type, DEFAULT_MFA_TYPE)
    duration = cf("duration", args.duration)

    command = args.command
    if command and command[0] == "--":
        command = command[1:]

    try:
        if mfa_type not in MFA_FACTOR_TYPES:
            raise OktaAwsSessionError(f"Unsupported mfa_type in {args.config}: {mfa_type}")
        mode = _mode_from_args(args)

        def ask_okta_credential():
            name = username or _prompt("Username: ").strip()
            return name, getpass.getpass("Password: ")

        credentials = login(
            mode,
            ask_okta_credential,
            mfa_type,
            mfa_code=args.mfa_code,
            prompt=_prompt,
            exchanger=StsExchanger(region=region),
            duration=_parse_duration(duration),
        )

        expiration = credentials.get("Expiration")
        if expiration is not None and hasattr(expiration, "strftime"):
            print(f"Credentials expire {expiration.strftime('%Y-%m-%d %H:%M:%S UTC')}",
                  file=sys.stderr)

        if command:
            sys.exit(run_with_credentials(command, credentials))
        print(format_exports(credentials, args.shell))
    except OktaAwsSessionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print(file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
