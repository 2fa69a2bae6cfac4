"""
Utility modules for the patient communication backend.

This package contains shared utility functions and helpers used across
the application, including datetime utilities and identifier helpers.
"""
