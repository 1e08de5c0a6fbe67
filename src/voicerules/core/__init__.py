"""Core domain layer: rule models, outcomes, errors and protocols."""
