"""
Utility functions and helpers for Caretaker.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit, rotating file handlers and per-session log files.
- **format_utils.py**: Validation and rendering of notify message templates.
- **discord/platform.py**: The Discord calls actions perform.
"""
