"""FTP operations module for FTP Browser.

This module handles all FTP-related functionality:
- FTPSession: Connection management with state tracking and locking
- resolver: IPv4-first address resolution with sequential fallback
- listing: DOS and Unix LIST output parsing
- transfer / progress: Progress-reporting downloads and uploads
- copier: Recursive server-side copy and tree walking
- Exceptions: FTP-specific error types
"""
