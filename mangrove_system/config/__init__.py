"""Settings, logging, scoring tables and prompt templates."""
