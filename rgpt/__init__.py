"""ReleaseGPT: turn tickets and commits into release notes."""

__version__ = "0.1.0"
