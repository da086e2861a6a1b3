"""Cache layout, legacy cache migration, file cleanup, time ranges and clipboard image helpers."""

__version__ = "1.0.0"