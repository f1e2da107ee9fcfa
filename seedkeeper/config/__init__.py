"""Configuration loading and validation for SeedKeeper."""
