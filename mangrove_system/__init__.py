"""Mangrove Evidence Verification: AI-assisted verification of complaints and plantation claims."""

__version__ = "0.1.0"
