"""eSIM plan catalog ingestion pipeline.

Scrapes mobile-data-plan offers from provider websites, normalizes
them to USD and replaces each provider/country plan set in the store.
"""

__version__ = "0.1.0"
