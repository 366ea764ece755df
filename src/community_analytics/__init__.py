"""Review and triage analytics for a GitHub organization."""

__version__ = "0.1.0"
