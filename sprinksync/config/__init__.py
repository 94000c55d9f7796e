"""Configuration and database setup package."""
