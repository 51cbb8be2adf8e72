"""Settings loading — dotkit.yml plus environment overrides."""

from dotkit.core.config.loader import ConfigError, Settings, load_settings  # noqa: F401
