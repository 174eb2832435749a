"""calloutsync - keep per-type master notes in sync with callouts across a vault."""

__version__ = "0.1.0"
