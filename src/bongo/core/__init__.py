"""Core error and configuration types shared across bongo."""
