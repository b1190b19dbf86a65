"""
keychain-cli: interactive manager for service-scoped account/password pairs.

Credentials live in the platform secret store (keyring, libsecret); this
package adds a thin adapter over it, JSON bulk export/import and a clipboard
bridge for copying retrieved passwords.
"""

__version__ = "1.0.0"
__author__ = "Tyler Zervas"
__email__ = "tz-dev@vectorweight.com"
