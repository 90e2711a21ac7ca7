"""Mail Variable Locator - find configuration variables in mailing list archives.

This package walks the history of a git-backed mail archive (one mail per
commit) and reports which variables are mentioned in which mail, and how often.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from mail_locator.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
