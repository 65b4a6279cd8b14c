"""ciscout - detect build platforms and synthesize CI configurations."""

__version__ = "0.3.0"
