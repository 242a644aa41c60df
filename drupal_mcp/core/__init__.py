"""
Core Components

The operating-mode coordinator.
"""
