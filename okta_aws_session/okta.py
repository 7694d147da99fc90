"""
Okta login: primary authentication, MFA, and SAML assertion retrieval.

Only the pieces needed to obtain a SAMLResponse for the AWS app are here;
factor enrollment, password changes and the like are left to the Okta UI.
"""

import logging
import sys
import time

import requests
from bs4 import BeautifulSoup

from okta_aws_session.errors import AssertionAcquisitionFailed, SessionAcquisitionFailed

logger = logging.getLogger(__name__)

PUSH_POLL_INTERVAL = 3   # seconds between push-approval polls
PUSH_POLL_TIMEOUT = 180  # seconds before giving up on a push

# --mfa-type value -> Okta factorType
MFA_FACTOR_TYPES = {
    "call": "call",
    "push": "push",
    "sms": "sms",
    "totp": "token:software:totp",
}

_STATUS_MESSAGES = {
    "LOCKED_OUT": "Your account is locked out. Please contact your administrator.",
    "PASSWORD_EXPIRED": "Your password has expired. Please reset it in Okta and try again.",
    "MFA_ENROLL": "MFA enrollment is required. Please enroll a factor in Okta first.",
}


class OktaClient:
    """Thin client for the Okta authn API and the AWS app embed link."""

    def __init__(self, session=None, timeout=30, out=None):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.out = out or sys.stderr

    def _post(self, url, payload):
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        response = self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    # -----------------------------------------------------------------------
    # Session token
    # -----------------------------------------------------------------------

    def get_session_token(self, domain, username, password, mfa_type, mfa_code=None,
                          prompt=input):
        """Authenticate *username* against *domain* and return an Okta session token."""
        okta_url = f"https://{domain}"
        try:
            result = self._post(
                f"{okta_url}/api/v1/authn",
                {"username": username, "password": password},
            )
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            if status_code == 401:
                reason = "invalid username or password"
            elif status_code == 429:
                reason = "too many requests, please wait and retry"
            else:
                reason = f"HTTP {status_code}"
            raise SessionAcquisitionFailed(f"Authentication failed: {reason}.") from exc
        except requests.RequestException as exc:
            raise SessionAcquisitionFailed(f"Authentication failed: {exc}") from exc

        status = result.get("status")
        if status in _STATUS_MESSAGES:
            raise SessionAcquisitionFailed(_STATUS_MESSAGES[status])

        if status in ("MFA_REQUIRED", "MFA_CHALLENGE"):
            result = self._verify_mfa(okta_url, result, mfa_type, mfa_code, prompt)
            status = result.get("status")

        if status != "SUCCESS":
            raise SessionAcquisitionFailed(
                f"Authentication failed with unexpected status: {status}"
            )

        session_token = result.get("sessionToken")
        if not session_token:
            raise SessionAcquisitionFailed("Okta did not return a session token.")
        logger.debug("Okta authentication successful for %s", username)
        return session_token

    def _verify_mfa(self, okta_url, authn_result, mfa_type, mfa_code, prompt):
        state_token = authn_result["stateToken"]
        factor = _find_factor(authn_result.get("_embedded", {}).get("factors", []), mfa_type)
        url = f"{okta_url}/api/v1/authn/factors/{factor['id']}/verify"

        try:
            if mfa_type == "push":
                return self._verify_push(url, state_token)

            if mfa_type in ("sms", "call"):
                print(f"Sending {mfa_type} challenge...", file=self.out)
                self._post(url, {"stateToken": state_token})

            passcode = mfa_code or prompt(f"Enter {mfa_type} code: ").strip()
            return self._post(url, {"stateToken": state_token, "passCode": passcode})
        except requests.RequestException as exc:
            raise SessionAcquisitionFailed(f"MFA verification failed: {exc}") from exc

    def _verify_push(self, url, state_token):
        """Poll Okta Verify push until approved, rejected, or timeout."""
        print("Sending push notification to Okta Verify, please approve it.", file=self.out)
        result = self._post(url, {"stateToken": state_token})
        deadline = time.time() + PUSH_POLL_TIMEOUT

        while result.get("status") == "MFA_CHALLENGE":
            factor_result = result.get("factorResult", "")
            if factor_result == "WAITING":
                if time.time() > deadline:
                    raise SessionAcquisitionFailed("Push notification timed out.")
                time.sleep(PUSH_POLL_INTERVAL)
                result = self._post(url, {"stateToken": state_token})
            elif factor_result == "REJECTED":
                raise SessionAcquisitionFailed("Push notification was rejected.")
            elif factor_result == "TIMEOUT":
                raise SessionAcquisitionFailed("Push notification timed out.")
            else:
                break

        return result

    # -----------------------------------------------------------------------
    # SAML assertion
    # -----------------------------------------------------------------------

    def get_saml_assertion(self, app_uri, session_token):
        """Return the base64 SAMLResponse the AWS app posts to AWS.

        The session token is first exchanged for a cookie through
        /login/sessionCookieRedirect; if that page carries no SAMLResponse the
        token is passed straight to the app as ``?sessionToken=``.
        """
        okta_url = "/".join(app_uri.split("/")[:3])
        try:
            resp = self.session.get(
                f"{okta_url}/login/sessionCookieRedirect",
                params={
                    "checkAccountSetupComplete": "true",
                    "token": session_token,
                    "redirectUrl": app_uri,
                },
                allow_redirects=True,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            assertion = extract_saml_response(resp.text)

            if not assertion:
                logger.debug("No SAMLResponse after cookie redirect, retrying with sessionToken")
                resp = self.session.get(
                    app_uri,
                    params={"sessionToken": session_token},
                    allow_redirects=True,
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                assertion = extract_saml_response(resp.text)
        except requests.RequestException as exc:
            raise AssertionAcquisitionFailed(f"Failed to retrieve SAML assertion: {exc}") from exc

        if not assertion:
            raise AssertionAcquisitionFailed(
                "Could not find SAMLResponse in Okta response. "
                "Verify that the app URI is the embed link for the AWS SAML app."
            )
        return assertion


def _find_factor(factors, mfa_type):
    factor_type = MFA_FACTOR_TYPES.get(mfa_type)
    if factor_type is None:
        raise SessionAcquisitionFailed(f"Unsupported MFA type: {mfa_type}")
    for factor in factors:
        if factor.get("factorType") == factor_type:
            return factor
    enrolled = ", ".join(sorted(f.get("factorType", "unknown") for f in factors)) or "none"
    raise SessionAcquisitionFailed(
        f"No '{mfa_type}' MFA factor enrolled (available: {enrolled})."
    )


def extract_saml_response(html):
    """Return the SAMLResponse value from an HTML form, or None."""
    soup = BeautifulSoup(html, "lxml")
    tag = soup.find("input", {"name": "SAMLResponse"})
    if not tag or not tag.get("value"):
        return None
    return tag["value"]
