"""AnimAlert petition API."""
