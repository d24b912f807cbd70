"""Test doubles for running the server without a browser."""
