"""
Configuration management for Caretaker.

- **app_configuration.py**: YAML loader for process-wide settings (database
  path, dispatch queue sizes, log level).
"""
