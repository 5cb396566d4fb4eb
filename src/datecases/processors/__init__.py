"""Processors for datecases."""
