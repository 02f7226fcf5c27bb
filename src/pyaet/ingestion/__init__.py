"""Ingestion layer.

Converts raw backend payloads into the library's typed models at the
store boundary.  Nothing downstream re-parses string-encoded fields.
"""
