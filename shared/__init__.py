"""
Shared module for common utilities used by the connection registry and its host.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging and audit helpers

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.config.logging import get_logger, setup_logging
"""
