"""Shared core values for the relay service."""

SERVICE_NAME = "ocr-relay"
