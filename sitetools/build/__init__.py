"""Static site build pipeline."""
