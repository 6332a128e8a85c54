"""Invest Journal backend: journal storage and derived performance metrics."""
