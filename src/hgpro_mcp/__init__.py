"""
HG-Pro MCP: Wide Range Bar and Hidden Gap analysis for MCP clients.
"""

__version__ = "1.0.0"
