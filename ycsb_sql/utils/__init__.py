"""
Helpers: field pair codec, row decoding, connection pooling, logging setup.
"""
