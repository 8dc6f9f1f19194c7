"""Wikitext parsing, formula evaluation, and round-trip patching for tower pages.

Modules in this package are pure (no Django imports) so they can be exercised
in fast unit tests and reused by any persistence layer.
"""
