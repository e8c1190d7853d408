"""Shared configuration, models and exceptions for mailforge."""
