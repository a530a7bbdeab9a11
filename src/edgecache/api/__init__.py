"""HTTP layer: response-cache middleware, admin router and app factory."""
