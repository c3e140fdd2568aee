"""Core building blocks: broker client, models, errors, logging and context."""
