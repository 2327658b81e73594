# Collaborators around the engine: data sources, narrative generation, caching
