"""
Configuration management for Summary Desk.

Handles loading and managing configuration from a YAML file and
environment variables.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "SUMMARY_DESK_"


@dataclass
class HistoryConfig:
    """Revision retention settings."""

    max_versions: int = 50
    cleanup_keep_count: int = 10


@dataclass
class ExportConfig:
    """Export renderer settings."""

    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "summary-desk")
    default_title: str = "Exported Document"
    default_author: str = "Summary Desk"
    default_category: str = "export"
    brand: str = "Summary Desk"


@dataclass
class SummarizerConfig:
    """LLM provider settings."""

    model: str = "claude-3-5-sonnet-latest"
    fallback_model: Optional[str] = "claude-3-5-haiku-latest"
    temperature: float = 0.3
    max_tokens: int = 2048
    max_content_chars: int = 50000


@dataclass
class EmailConfig:
    """SMTP relay settings. The password only ever comes from the environment."""

    smtp_host: Optional[str] = None
    smtp_port: int = 587
    sender: Optional[str] = None
    username: Optional[str] = None
    use_tls: bool = True


@dataclass
class SummaryDeskConfig:
    """Main configuration for Summary Desk."""

    history: HistoryConfig = field(default_factory=HistoryConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    summarizer: SummarizerConfig = field(default_factory=SummarizerConfig)
    email: EmailConfig = field(default_factory=EmailConfig)

    log_level: str = "INFO"

    # Hide internal failure details from end users
    redact_errors: bool = False


def _as_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes', 'on')


class ConfigManager:
    """Manages Summary Desk configuration from multiple sources."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = config_dir or Path.home() / '.summary-desk'
        self.config_file = self.config_dir / 'config.yaml'
        self._config: Optional[SummaryDeskConfig] = None

    def load_config(self) -> SummaryDeskConfig:
        """Load configuration from all sources."""
        if self._config:
            return self._config

        config = SummaryDeskConfig()

        if self.config_file.exists():
            config = self._merge_configs(config, self._load_from_file())

        config = self._merge_configs(config, self._load_from_env())

        self._config = config
        return config

    def _load_from_file(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_file, 'r') as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not load config file %s: %s", self.config_file, e)
            return {}

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        for key in ('max_versions', 'cleanup_keep_count'):
            value = os.getenv(f'{ENV_PREFIX}{key.upper()}')
            if value:
                try:
                    env_config.setdefault('history', {})[key] = int(value)
                except ValueError:
                    logger.warning("Ignoring non-integer %s%s=%r", ENV_PREFIX, key.upper(), value)

        temp_dir = os.getenv(f'{ENV_PREFIX}TEMP_DIR')
        if temp_dir:
            env_config.setdefault('export', {})['temp_dir'] = temp_dir

        model = os.getenv(f'{ENV_PREFIX}MODEL')
        if model:
            env_config.setdefault('summarizer', {})['model'] = model

        fallback_model = os.getenv(f'{ENV_PREFIX}FALLBACK_MODEL')
        if fallback_model:
            env_config.setdefault('summarizer', {})['fallback_model'] = fallback_model

        for key, name in (('smtp_host', 'SMTP_HOST'), ('sender', 'EMAIL_FROM'), ('username', 'SMTP_USER')):
            value = os.getenv(f'{ENV_PREFIX}{name}')
            if value:
                env_config.setdefault('email', {})[key] = value

        smtp_port = os.getenv(f'{ENV_PREFIX}SMTP_PORT')
        if smtp_port:
            try:
                env_config.setdefault('email', {})['smtp_port'] = int(smtp_port)
            except ValueError:
                logger.warning("Ignoring non-integer %sSMTP_PORT=%r", ENV_PREFIX, smtp_port)

        log_level = os.getenv(f'{ENV_PREFIX}LOG_LEVEL')
        if log_level:
            env_config['log_level'] = log_level.upper()

        redact = os.getenv(f'{ENV_PREFIX}REDACT_ERRORS')
        if redact:
            env_config['redact_errors'] = _as_bool(redact)

        return env_config

    def _merge_configs(self, base: SummaryDeskConfig, override: Dict[str, Any]) -> SummaryDeskConfig:
        """Merge a configuration dictionary into ``base``."""
        history = override.get('history') or {}
        for key in ('max_versions', 'cleanup_keep_count'):
            if key in history:
                setattr(base.history, key, int(history[key]))

        export = override.get('export') or {}
        if 'temp_dir' in export:
            base.export.temp_dir = Path(export['temp_dir']).expanduser()
        for key in ('default_title', 'default_author', 'default_category', 'brand'):
            if key in export:
                setattr(base.export, key, str(export[key]))

        summarizer = override.get('summarizer') or {}
        for key in ('model', 'fallback_model'):
            if key in summarizer:
                setattr(base.summarizer, key, summarizer[key])
        if 'temperature' in summarizer:
            base.summarizer.temperature = float(summarizer['temperature'])
        for key in ('max_tokens', 'max_content_chars'):
            if key in summarizer:
                setattr(base.summarizer, key, int(summarizer[key]))

        email = override.get('email') or {}
        for key in ('smtp_host', 'sender', 'username'):
            if key in email:
                setattr(base.email, key, email[key])
        if 'smtp_port' in email:
            base.email.smtp_port = int(email['smtp_port'])
        if 'use_tls' in email:
            value = email['use_tls']
            base.email.use_tls = _as_bool(value) if isinstance(value, str) else bool(value)

        if 'log_level' in override:
            base.log_level = str(override['log_level']).upper()
        if 'redact_errors' in override:
            value = override['redact_errors']
            base.redact_errors = _as_bool(value) if isinstance(value, str) else bool(value)

        return base

    def to_dict(self, config: SummaryDeskConfig) -> Dict[str, Any]:
        return {
            'history': {
                'max_versions': config.history.max_versions,
                'cleanup_keep_count': config.history.cleanup_keep_count,
            },
            'export': {
                'temp_dir': str(config.export.temp_dir),
                'default_title': config.export.default_title,
                'default_author': config.export.default_author,
                'default_category': config.export.default_category,
                'brand': config.export.brand,
            },
            'summarizer': {
                'model': config.summarizer.model,
                'fallback_model': config.summarizer.fallback_model,
                'temperature': config.summarizer.temperature,
                'max_tokens': config.summarizer.max_tokens,
                'max_content_chars': config.summarizer.max_content_chars,
            },
            'email': {
                'smtp_host': config.email.smtp_host,
                'smtp_port': config.email.smtp_port,
                'sender': config.email.sender,
                'username': config.email.username,
                'use_tls': config.email.use_tls,
            },
            'log_level': config.log_level,
            'redact_errors': config.redact_errors,
        }

    def save_config(self, config: SummaryDeskConfig) -> None:
        """Save configuration to file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            yaml.safe_dump(self.to_dict(config), f, default_flow_style=False, indent=2, sort_keys=False)
        self._config = config

    def create_default_config(self) -> Path:
        """Create a default configuration file."""
        self.save_config(SummaryDeskConfig())
        return self.config_file

    def get_config_info(self) -> Dict[str, Any]:
        """Get information about current configuration."""
        config = self.load_config()

        return {
            'config_file': str(self.config_file),
            'config_exists': self.config_file.exists(),
            'max_versions': config.history.max_versions,
            'temp_dir': str(config.export.temp_dir),
            'model': config.summarizer.model,
            'log_level': config.log_level,
            'email_configured': bool(config.email.smtp_host and config.email.sender),
            'anthropic_api_key_set': bool(os.getenv('ANTHROPIC_API_KEY')),
        }


# Global config manager instance
_config_manager: Optional[ConfigManager] = None

def get_config_manager() -> ConfigManager:
    """Get the global config manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def load_config() -> SummaryDeskConfig:
    """Load the current configuration."""
    return get_config_manager().load_config()
