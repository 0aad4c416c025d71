"""Domain models, codecs and errors for brewlog."""
