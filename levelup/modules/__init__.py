"""Domain modules: progression, catalog, quests, economy, weekly bundles, player and maintenance."""
