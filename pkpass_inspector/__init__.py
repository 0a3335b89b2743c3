"""
PKPass Inspector

Validates Apple Wallet .pkpass archives (structure, pass.json keys and the
signing certificates' identity claims) and builds a preview model of the pass.
"""

__version__ = "1.0.0"
