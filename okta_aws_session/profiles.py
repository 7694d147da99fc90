"""
Stored profiles and the input resolver.

A profile names an Okta AWS app and, optionally, the role to assume in it.
Profiles live in a CSV file with the header::

    Name,OktaAppURI,RoleARN,PrincipalARN

The file is looked for in an ordered list of directories and only the first
one found is read.
"""

import configparser
import csv
import logging
import os
from collections import namedtuple

from okta_aws_session.errors import ProfileNotFound

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PROFILES_FILENAME = "okta-aws-profiles.csv"
APP_DIRNAME = "okta-aws-session"
DEFAULT_CONFIG_PATH = os.path.expanduser("~/.okta-aws")

PROFILE_FIELDS = ("Name", "OktaAppURI", "RoleARN", "PrincipalARN")

Profile = namedtuple("Profile", ["name", "app_uri", "role_arn", "principal_arn"])

# Invocation modes; exactly one is built per run.
ProfileMode = namedtuple("ProfileMode", ["name", "role_arn", "principal_arn"])
ProfileMode.__new__.__defaults__ = (None, None)
ManualMode = namedtuple("ManualMode", ["app_uri", "role_arn", "principal_arn"])
ManualMode.__new__.__defaults__ = (None, None)

ResolvedInputs = namedtuple("ResolvedInputs", ["app_uri", "role_arn", "principal_arn"])

# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------


def load_config(config_path=DEFAULT_CONFIG_PATH):
    """Load user settings (username, region, ...) from an INI file."""
    config = configparser.ConfigParser()
    if os.path.exists(config_path):
        config.read(config_path)
    return config


# ---------------------------------------------------------------------------
# Profile store
# ---------------------------------------------------------------------------


def _app_data_dir():
    base = (
        os.environ.get("APPDATA")
        or os.environ.get("XDG_CONFIG_HOME")
        or os.path.expanduser("~/.config")
    )
    return os.path.join(base, APP_DIRNAME)


def default_candidates():
    """Return the profile file locations to probe, in priority order."""
    install_dir = os.path.dirname(os.path.abspath(__file__))
    home = os.path.expanduser("~")
    return [
        os.path.join(install_dir, PROFILES_FILENAME),
        os.path.join(_app_data_dir(), PROFILES_FILENAME),
        os.path.join(home, "Documents", PROFILES_FILENAME),
        os.path.join(home, PROFILES_FILENAME),
    ]


def find_profiles_file(candidates=None):
    """Return the first existing path among *candidates*, or None."""
    if candidates is None:
        candidates = default_candidates()
    for path in candidates:
        if os.path.isfile(path):
            logger.debug("Using profiles file %s", path)
            return path
        logger.debug("No profiles file at %s", path)
    return None


def read_profiles(path):
    """Parse a profiles CSV into a list of Profile tuples.

    Empty RoleARN / PrincipalARN cells come back as None.
    """
    profiles = []
    with open(path, newline="", encoding="utf-8-sig") as fh:
        for row in csv.DictReader(fh):
            name = (row.get("Name") or "").strip()
            if not name:
                continue
            profiles.append(
                Profile(
                    name=name,
                    app_uri=(row.get("OktaAppURI") or "").strip(),
                    role_arn=(row.get("RoleARN") or "").strip() or None,
                    principal_arn=(row.get("PrincipalARN") or "").strip() or None,
                )
            )
    return profiles


def find_profile(name, candidates=None):
    """Look up *name* (case-insensitive) in the first profiles file found.

    Raises ProfileNotFound when no file exists or the file has no such entry.
    Later candidate files are never consulted once one has been found.
    """
    path = find_profiles_file(candidates)
    if path is None:
        raise ProfileNotFound(
            f"Profile '{name}' not found: no {PROFILES_FILENAME} in any search location."
        )

    wanted = name.lower()
    for profile in read_profiles(path):
        if profile.name.lower() == wanted:
            return profile

    raise ProfileNotFound(f"Profile '{name}' not found in {path}.")


# ---------------------------------------------------------------------------
# Input resolver
# ---------------------------------------------------------------------------


def resolve_inputs(mode, candidates=None):
    """Turn an invocation mode into the effective (app URI, role, principal).

    For a ProfileMode the stored profile supplies the defaults and any
    explicit role/principal ARN on the mode overrides it.  An empty ARN means
    "choose interactively" and is normalised to None.
    """
    if isinstance(mode, ProfileMode):
        profile = find_profile(mode.name, candidates)
        return ResolvedInputs(
            app_uri=profile.app_uri,
            role_arn=mode.role_arn or profile.role_arn or None,
            principal_arn=mode.principal_arn or profile.principal_arn or None,
        )

    if isinstance(mode, ManualMode):
        return ResolvedInputs(
            app_uri=mode.app_uri,
            role_arn=mode.role_arn or None,
            principal_arn=mode.principal_arn or None,
        )

    raise TypeError(f"Unsupported invocation mode: {mode!r}")
