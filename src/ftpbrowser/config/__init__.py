"""Configuration module for FTP Browser.

This module handles application settings and credentials:
- SettingsManager: JSON-based settings persistence
- BookmarkStore: Saved connections
- CredentialManager: Secure credential storage via keyring
- Paths: Application data locations
"""
