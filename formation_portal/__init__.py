"""Catalogue de formations, inscription en ligne et console d'administration."""
