"""Service layer: session lifecycle, credential store and media uploads."""
