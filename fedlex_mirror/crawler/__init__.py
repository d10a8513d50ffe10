"""Network fetching and local rendering worker pools."""
