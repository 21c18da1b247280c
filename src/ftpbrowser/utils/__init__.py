"""Utility module for FTP Browser.

This module provides cross-cutting utilities:
- Logging: Configured logging with PII redaction
- Events: Fire-and-forget event sinks for the GUI
- Validators: Input validation for hosts, ports and paths
- Threading: Background task helper for non-blocking commands
"""
