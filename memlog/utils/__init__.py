"""
Utility modules for memlog.

Modules:
    - trace: Allocation capture toggled from the dashboard
"""
