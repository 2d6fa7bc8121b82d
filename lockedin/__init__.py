"""
Locked In - focus session process control engine
"""

__version__ = "1.0.0"
