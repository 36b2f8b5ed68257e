"""
Core interfaces: the DB contract, sessions, statement cache, query builder
and configuration.
"""
