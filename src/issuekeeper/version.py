"""Version information for issuekeeper."""

__version__ = "0.1.0"
