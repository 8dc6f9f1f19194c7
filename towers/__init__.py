"""Editable in-memory model of a tower's per-level statistics.

This package is pure (no Django imports). It turns parsed wikitext into a
`Tower` of skins, each with level projections that can be mutated and
serialized back through `wikitext.patcher`.
"""
