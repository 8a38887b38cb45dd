"""Core types and error taxonomy shared by every pipeline component."""
