"""sdfatlas - Build distance-field texture atlases from fonts.

sdfatlas generates a signed distance field (SDF, PSDF, MSDF or MTSDF) bitmap
for every character of a charset, packs the bitmaps into one or more
fixed-size texture pages and writes a descriptor mapping each glyph to its
placement and metrics.

Example:
    $ sdfatlas Roboto-Regular.ttf -c latin-0 -s 48

This will create Roboto-Regular.json and Roboto-Regular.png in the current
directory.
"""

__version__ = "0.1.0"
__author__ = "Dimosthenis Kaponis"

__all__ = ["__author__", "__version__"]
