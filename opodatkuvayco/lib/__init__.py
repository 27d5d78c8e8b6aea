"""Rate providers, report parsing and export."""
