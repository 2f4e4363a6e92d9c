"""
Test suite for common-schema.

Unit tests live in tests/unit and exercise the public API through
create_schema() and SchemaFactory.
"""
