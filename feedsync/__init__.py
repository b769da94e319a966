"""
Catalog feed sync.

Chained batch export of a product catalog into a CSV feed file that an
external catalog system downloads.
"""

__version__ = "1.0.0"
