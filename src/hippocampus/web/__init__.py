"""HTTP surface for stored imports."""
