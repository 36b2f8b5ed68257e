"""
ycsb-sql: SQL database adapters for YCSB-style key/value benchmark workloads.
"""

__version__ = "0.1.0"
