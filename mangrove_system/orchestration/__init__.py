"""Scheduling and progress reporting for the verification pipeline."""
