"""Keeps a lending position's loan-to-value ratio inside a target band."""

__version__ = "0.1.0"
