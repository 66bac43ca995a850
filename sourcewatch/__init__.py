"""sourcewatch — browser traffic monitor that tracks reuse of captured sources values."""

__version__ = "0.1.0"
