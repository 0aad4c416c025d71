"""Infrastructure adapters: repository clients, persistence and caching."""
