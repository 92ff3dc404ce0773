# backend/__init__.py

"""
Backend package for the Pre-flight Validation Service.
"""
