"""Symbol library, footprint association and library table handling."""
