"""DexAPI importer: pulls Pokemon reference data from PokeAPI into the local store."""
