"""Python client for the RetDec decompilation web service."""

__version__ = "0.1.0"
