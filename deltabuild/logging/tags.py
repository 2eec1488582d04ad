# deltabuild/logging/tags.py
"""
Logging subsystem tags.

Prefixed to log messages so output stays searchable across modules.
"""

STATE = "[STATE]"
DELTA = "[DELTA]"
SCAN = "[SCAN]"
OUTPUT = "[OUTPUT]"
CONTEXT = "[CONTEXT]"
CONFIG = "[CONFIG]"
CLI = "[CLI]"
