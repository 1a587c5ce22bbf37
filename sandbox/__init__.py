"""
Sandbox Module

Isolated, time-bounded execution of exercise sources.

This module provides:
- Fresh global namespace per load with a ``module.exports`` slot
- Separate parse and run time budgets
- Subprocess-based checking with a wall-clock deadline

WARNING: This is NOT a security boundary. There is no memory, syscall or
import restriction; isolation only keeps exercises from interfering with
each other.
"""

__version__ = "0.1.0"
