"""Error taxonomy shared by the engine and the HTTP layer."""
