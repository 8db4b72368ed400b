"""Photo gallery built on a file-backed dictionary.

Modules
-------
saved_photos
    Save flow for captured photos, including the gallery capacity cap.
"""
