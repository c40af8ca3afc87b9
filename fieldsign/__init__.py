"""
Field placement and signing.

Places typed fields over rendered PDF pages, converts their viewport
coordinates into PDF points and bakes a signature image into the document
(overlay merge) at the selected positions, with a SHA-256 digest pair for audit.
"""
