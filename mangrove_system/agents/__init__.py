"""Verification agents for mangrove complaints and plantation claims."""
