"""atcompile - expand @file references in markdown documents."""

__version__ = "0.1.0"
