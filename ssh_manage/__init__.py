"""
ssh_manage: registry of SSH server profiles owned by chat accounts.

Profile names are public to the owning account; full connection profiles
are only disclosed against the account's bearer token.
"""

import logging

__version__ = "1.0.0"

logging.getLogger("ssh_manage").addHandler(logging.NullHandler())
