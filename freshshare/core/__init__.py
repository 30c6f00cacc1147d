"""Core shared definitions for FreshShare."""
