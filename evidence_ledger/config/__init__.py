"""Configuration: settings, logging, tier constants and extraction patterns."""
