"""Tournament points shop: the ribbon catalog, its Redis store, and the shop page."""
