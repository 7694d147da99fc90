"""
okta-aws-session: exchange an Okta SAML assertion for temporary AWS credentials.

The credentials are handed to the calling shell (or to a child command) through
environment variables only; nothing is written to ~/.aws.
"""

__version__ = "0.1.0"
