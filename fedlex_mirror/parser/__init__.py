"""Parsers for documents served by the mirrored site."""
