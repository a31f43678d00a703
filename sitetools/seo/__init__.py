"""Schema, link, heading, and locale tooling."""
