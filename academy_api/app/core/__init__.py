"""Configuration, persistence, security and error primitives."""
