"""HTTP API for the faceless video pipeline."""
