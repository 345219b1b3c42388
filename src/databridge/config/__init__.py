"""
Layered configuration files, validated against a schema, and the settings built from them.
"""
