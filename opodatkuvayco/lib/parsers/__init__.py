"""Broker report parsers."""
