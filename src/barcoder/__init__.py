"""
Barcoder shopping-list replay package.

The package turns scanned product barcodes into shopping lists and replays them one
barcode at a time for a store scanner, with product enrichment from Open Food Facts.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
