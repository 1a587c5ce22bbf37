"""
Checker Module

Configuration, batch runner and CLI.

This module provides:
- YAML-based configuration loading
- Exercise discovery
- Fail-fast or keep-going batch execution
- Styled console reporting
"""

__version__ = "0.1.0"
