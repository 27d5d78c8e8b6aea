"""Shared configuration, error kinds and concurrency helpers."""
