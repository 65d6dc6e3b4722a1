"""
Artspace curation back end.

Keeps artworks, shows, locations and artists mutually referential as
artworks move through the exhibition acceptance workflow.
"""

__version__ = "1.0.0"
