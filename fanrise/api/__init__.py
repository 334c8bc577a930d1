"""HTTP layer: app factory, dependencies and error rendering."""
