"""Filesystem side of the catalog: scanning, file types, thumbnails and notes."""
