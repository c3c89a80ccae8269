"""User management service.

Registers users locally, mirrors them to an external OAuth2/OIDC identity
provider, and exchanges local credentials for provider tokens.
"""

from .__version__ import __version__

__all__ = ["__version__"]
