"""Configuration, errors, logging, and shared models."""
