"""
SAML assertion parsing and role selection.

The AWS role attribute carries one value per assumable role, each a
comma-separated ``principal_arn,role_arn`` pair.
"""

import base64
import binascii
import logging
import sys
import xml.etree.ElementTree as ET
from collections import namedtuple

from okta_aws_session.errors import InvalidSelection, MalformedAssertion, NoRolesFound

logger = logging.getLogger(__name__)

SAML_ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"
SAML_SESSION_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/SessionDuration"
SAML_NS = "{urn:oasis:names:tc:SAML:2.0:assertion}"

DEFAULT_SESSION_DURATION = 3600  # 1 hour

RolePair = namedtuple("RolePair", ["principal_arn", "role_arn", "raw"])


def account_id(role_arn):
    """Return the AWS account id embedded in *role_arn*."""
    try:
        return role_arn.split(":")[4].split("/")[0]
    except IndexError:
        raise MalformedAssertion(f"Not a role ARN: {role_arn!r}") from None


def role_name(role_arn):
    return role_arn.split("/")[-1]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _decode(assertion):
    try:
        saml_xml = base64.b64decode(assertion)
        return ET.fromstring(saml_xml)
    except (binascii.Error, ValueError, ET.ParseError) as exc:
        raise MalformedAssertion(f"Could not decode SAML assertion: {exc}") from exc


def _attribute_values(root, name):
    for attr in root.iter(f"{SAML_NS}Attribute"):
        if attr.get("Name", "") != name:
            continue
        for value_el in attr.iter(f"{SAML_NS}AttributeValue"):
            yield (value_el.text or "").strip()


def _parse_role_value(text):
    """Split one role attribute value into a RolePair.

    Okta normally emits ``principal,role`` but some apps are configured the
    other way round; the pair is normalised either way.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2 or not all(parts):
        raise MalformedAssertion(f"Malformed role attribute value: {text!r}")

    principal_arn, role_arn = parts
    if ":role/" in principal_arn and ":role/" not in role_arn:
        principal_arn, role_arn = role_arn, principal_arn
    return RolePair(principal_arn=principal_arn, role_arn=role_arn, raw=text)


def parse_role_pairs(assertion):
    """Decode *assertion* and return its role pairs sorted by raw value."""
    root = _decode(assertion)
    values = sorted(_attribute_values(root, SAML_ROLE_ATTRIBUTE))
    pairs = [_parse_role_value(v) for v in values]
    logger.debug("Found %d role(s) in SAML assertion", len(pairs))
    return pairs


def parse_session_duration(assertion):
    """Return the SessionDuration attribute in seconds, or the 1 hour default."""
    root = _decode(assertion)
    for text in _attribute_values(root, SAML_SESSION_ATTRIBUTE):
        try:
            return int(text)
        except ValueError:
            logger.debug("Ignoring non-numeric SessionDuration %r", text)
    return DEFAULT_SESSION_DURATION


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def format_role_menu(pairs):
    """Return the menu lines for *pairs*, with a header per account.

    *pairs* must already be sorted; a header is emitted each time the account
    differs from the previous line's.
    """
    lines = []
    previous = None
    for index, pair in enumerate(pairs, start=1):
        current = account_id(pair.role_arn)
        if current != previous:
            lines.append(f"Account: {current}")
            previous = current
        lines.append(f"  [{index}] {role_name(pair.role_arn)}")
    return lines


def select_role(pairs, prompt=input, out=None):
    """Pick one RolePair, prompting only when there is more than one.

    A non-numeric or out of range answer raises InvalidSelection; there is no
    second attempt.
    """
    if not pairs:
        raise NoRolesFound(
            "No AWS roles found in SAML assertion. "
            "Ensure the Okta app is configured to include Role attributes."
        )
    if len(pairs) == 1:
        return pairs[0]

    out = out or sys.stderr
    print("\nAvailable AWS roles:", file=out)
    for line in format_role_menu(pairs):
        print(line, file=out)

    answer = prompt("\nSelect role: ").strip()
    if not (answer.isascii() and answer.isdecimal()):
        raise InvalidSelection(f"Invalid selection {answer!r}: not a number.")
    choice = int(answer)
    if not 1 <= choice <= len(pairs):
        raise InvalidSelection(f"Invalid selection {choice}: expected 1-{len(pairs)}.")
    return pairs[choice - 1]


def resolve_role(assertion, role_arn=None, principal_arn=None, prompt=input, out=None):
    """Return the RolePair to assume for *assertion*.

    With both ARNs given they are used verbatim.  With only one, the
    assertion's pairs are narrowed to those matching it.  Otherwise the user
    chooses from everything the assertion offers.
    """
    if role_arn and principal_arn:
        return RolePair(principal_arn=principal_arn, role_arn=role_arn,
                        raw=f"{principal_arn},{role_arn}")

    pairs = parse_role_pairs(assertion)
    if role_arn or principal_arn:
        matches = [
            p for p in pairs
            if (not role_arn or p.role_arn == role_arn)
            and (not principal_arn or p.principal_arn == principal_arn)
        ]
        if not matches:
            raise InvalidSelection(
                f"No role in the SAML assertion matches "
                f"role={role_arn or 'any'}, principal={principal_arn or 'any'}"
            )
        pairs = matches

    return select_role(pairs, prompt=prompt, out=out)
