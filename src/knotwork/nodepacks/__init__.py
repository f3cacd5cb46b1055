"""Node packs bundled with knotwork."""
