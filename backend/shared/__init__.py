"""PostgreSQL storage layer: pool, cache, models, repositories and migrations."""
