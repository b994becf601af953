"""Command-line interface for formcheck.

Evaluates records and tables against profile files and inspects the
filter/constraint registry.
"""
