"""
Configuration management for Lyrics-Translator

This module handles loading, validation, and management of application settings
from YAML files and environment variables. It provides a centralized
configuration system shared by the rate limiter, the provider adapters and the
pipeline orchestrator.

The configuration is organized into logical sections using dataclasses:
- Pipeline behavior (stage retries, delays, language defaults)
- Per-stage provider ordering (recognition, lyrics, translation)
- Provider table (base URL, rate limit, timeout, retry budget, credentials)
- Network, logging and credential settings

All sensitive data (API keys, secrets) can be loaded from environment variables,
while non-sensitive settings can be stored in YAML files. Providers whose
required credentials are missing stay disabled and are skipped by the
dispatchers without producing errors.
"""

import os
import logging
import dataclasses
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()

logger = logging.getLogger(__name__)

HOUR_MILLIS = 60 * 60 * 1000
DAY_MILLIS = 24 * HOUR_MILLIS
MONTH_MILLIS = 30 * DAY_MILLIS


@dataclass(frozen=True)
class RateLimitConfig:
    """Sliding window quota: at most max_requests inside any window_millis span"""
    max_requests: int
    window_millis: int


@dataclass(frozen=True)
class ProviderConfig:
    """
    Static configuration of one external provider

    Immutable and built once at startup. The key doubles as the rate limiter
    bucket name and is formed as "<stage>_<provider>".

    Attributes:
        key: Rate limiter key, e.g. "lyrics_musixmatch"
        name: Display name used as the result source tag and in errors
        base_url: Service endpoint
        rate_limit: Sliding window quota for this provider
        timeout_millis: Upper bound for one provider call
        retry_attempts: Advertised retry budget of the service
        credentials: (name, value) credential pairs (api_key, access_key, ...)
        required_credentials: Credential names that must be non-empty
    """
    key: str
    name: str
    base_url: str
    rate_limit: RateLimitConfig
    timeout_millis: int = 10000
    retry_attempts: int = 2
    credentials: Tuple[Tuple[str, str], ...] = ()
    required_credentials: Tuple[str, ...] = ()

    @property
    def is_enabled(self) -> bool:
        """True when every required credential is present"""
        return all(self.credential(name) for name in self.required_credentials)

    @property
    def missing_credentials(self) -> List[str]:
        return [name for name in self.required_credentials if not self.credential(name)]

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_millis / 1000.0

    def credential(self, name: str) -> str:
        return dict(self.credentials).get(name, "")


# Built-in provider table. Quotas follow the free tiers of each service.
DEFAULT_PROVIDERS: Dict[str, ProviderConfig] = {
    'recognition_acrcloud': ProviderConfig(
        key='recognition_acrcloud',
        name='ACRCloud',
        base_url='https://identify-eu-west-1.acrcloud.com/v1/identify',
        rate_limit=RateLimitConfig(max_requests=500, window_millis=MONTH_MILLIS),
        timeout_millis=10000,
        retry_attempts=2,
        required_credentials=('access_key', 'access_secret'),
    ),
    'recognition_audd': ProviderConfig(
        key='recognition_audd',
        name='AudD.io',
        base_url='https://api.audd.io/',
        rate_limit=RateLimitConfig(max_requests=1000, window_millis=MONTH_MILLIS),
        timeout_millis=10000,
        retry_attempts=2,
        required_credentials=('api_key',),
    ),
    'lyrics_musixmatch': ProviderConfig(
        key='lyrics_musixmatch',
        name='Musixmatch',
        base_url='https://api.musixmatch.com/ws/1.1',
        rate_limit=RateLimitConfig(max_requests=2000, window_millis=DAY_MILLIS),
        timeout_millis=8000,
        retry_attempts=3,
        required_credentials=('api_key',),
    ),
    'lyrics_lyrics_ovh': ProviderConfig(
        key='lyrics_lyrics_ovh',
        name='Lyrics.ovh',
        base_url='https://api.lyrics.ovh/v1',
        rate_limit=RateLimitConfig(max_requests=1000, window_millis=DAY_MILLIS),
        timeout_millis=8000,
        retry_attempts=3,
    ),
    'lyrics_lyrics_api': ProviderConfig(
        key='lyrics_lyrics_api',
        name='LyricsAPI',
        base_url='https://api.lyrics.com/lyric',
        rate_limit=RateLimitConfig(max_requests=500, window_millis=DAY_MILLIS),
        timeout_millis=8000,
        retry_attempts=2,
    ),
    'translation_mymemory': ProviderConfig(
        key='translation_mymemory',
        name='MyMemory',
        base_url='https://api.mymemory.translated.net/get',
        rate_limit=RateLimitConfig(max_requests=1000, window_millis=DAY_MILLIS),
        timeout_millis=10000,
        retry_attempts=2,
    ),
    'translation_libretranslate': ProviderConfig(
        key='translation_libretranslate',
        name='LibreTranslate',
        base_url='https://libretranslate.de/translate',
        rate_limit=RateLimitConfig(max_requests=20, window_millis=DAY_MILLIS),
        timeout_millis=15000,
        retry_attempts=2,
    ),
    'translation_google_free': ProviderConfig(
        key='translation_google_free',
        name='Google Translate (Free)',
        base_url='https://translate.googleapis.com/translate_a/single',
        rate_limit=RateLimitConfig(max_requests=100, window_millis=HOUR_MILLIS),
        timeout_millis=8000,
        retry_attempts=1,
    ),
}

# Provider key -> {credential name: CredentialsConfig attribute}
PROVIDER_CREDENTIALS: Dict[str, Dict[str, str]] = {
    'recognition_acrcloud': {
        'access_key': 'acrcloud_access_key',
        'access_secret': 'acrcloud_access_secret',
    },
    'recognition_audd': {'api_key': 'audd_api_key'},
    'lyrics_musixmatch': {'api_key': 'musixmatch_api_key'},
    'translation_libretranslate': {'api_key': 'libretranslate_api_key'},
}

SUPPORTED_LANGUAGES: List[Dict[str, str]] = [
    {'code': 'en', 'name': 'English'},
    {'code': 'es', 'name': 'Spanish'},
    {'code': 'fr', 'name': 'French'},
    {'code': 'de', 'name': 'German'},
    {'code': 'it', 'name': 'Italian'},
    {'code': 'pt', 'name': 'Portuguese'},
    {'code': 'ru', 'name': 'Russian'},
    {'code': 'ja', 'name': 'Japanese'},
    {'code': 'ko', 'name': 'Korean'},
    {'code': 'zh', 'name': 'Chinese'},
    {'code': 'ar', 'name': 'Arabic'},
    {'code': 'hi', 'name': 'Hindi'},
    {'code': 'nl', 'name': 'Dutch'},
    {'code': 'pl', 'name': 'Polish'},
    {'code': 'sv', 'name': 'Swedish'},
]


@dataclass
class PipelineConfig:
    """
    Pipeline orchestration settings

    Controls the stage retry budget and the pauses inserted between retries
    and between batch items to respect shared provider quotas.
    """
    max_retries: int = 2
    retry_delay_millis: int = 1000
    batch_delay_millis: int = 2000
    default_source_language: str = "auto"


@dataclass
class RecognitionConfig:
    """Audio recognition stage: provider priority order"""
    providers: list = field(default_factory=lambda: ["acrcloud", "audd"])


@dataclass
class LyricsConfig:
    """
    Lyrics lookup stage configuration

    Providers are tried in the listed order; the richest catalog comes first
    and the unauthenticated fallbacks last.
    """
    providers: list = field(default_factory=lambda: ["musixmatch", "lyrics_ovh", "lyrics_api"])
    clean_search_terms: bool = True


@dataclass
class TranslationConfig:
    """
    Translation stage configuration

    Long lyrics are split into chunks of at most chunk_size characters, each
    translated through the fallback chain with chunk_delay_millis in between.
    best_quality switches to the opt-in mode that queries every admissible
    provider and keeps the best-scoring translation.
    """
    providers: list = field(default_factory=lambda: ["mymemory", "libretranslate", "google_free"])
    chunk_size: int = 1000
    chunk_delay_millis: int = 1000
    best_quality: bool = False
    best_quality_delay_millis: int = 500
    trusted_sources: list = field(default_factory=lambda: ["MyMemory"])


@dataclass
class CredentialsConfig:
    """
    API credentials for providers that require them

    Should be provided via environment variables; they are never written back
    by save_config().
    """
    acrcloud_access_key: str = ""
    acrcloud_access_secret: str = ""
    audd_api_key: str = ""
    musixmatch_api_key: str = ""
    libretranslate_api_key: str = ""


@dataclass
class NetworkConfig:
    """HTTP settings shared by all adapters"""
    user_agent: str = "LyricsTranslator/1.0"


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls application logging behavior including log levels, file output,
    rotation, and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from YAML files and environment variables and builds the
    immutable provider table used by the dispatchers.

    The class handles:
    - Loading configuration from YAML files (or an explicit dictionary)
    - Overriding credentials with environment variables
    - Applying per-provider overrides on top of the built-in table
    - Validating credentials and configuration values
    - Saving configuration back to files
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        config_data: Optional[Dict[str, Any]] = None,
        use_environment: bool = True
    ):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
            config_data: Configuration dictionary used instead of searching for files
            use_environment: Whether environment variables may override credentials
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".lyrics-translator"

        self.pipeline = PipelineConfig()
        self.recognition = RecognitionConfig()
        self.lyrics = LyricsConfig()
        self.translation = TranslationConfig()
        self.credentials = CredentialsConfig()
        self.network = NetworkConfig()
        self.logging = LoggingConfig()
        self.provider_overrides: Dict[str, Dict[str, Any]] = {}

        if config_data is not None:
            self._apply_config(config_data)
        else:
            self._load_config()
        if use_environment:
            self._load_environment_variables()

        self.providers: Dict[str, ProviderConfig] = self._build_providers()

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Updates only the attributes that exist in both the config data and the
        dataclass definition. The "providers" section is kept aside and merged
        into the provider table by _build_providers().

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = {
            'pipeline': self.pipeline,
            'recognition': self.recognition,
            'lyrics': self.lyrics,
            'translation': self.translation,
            'credentials': self.credentials,
            'network': self.network,
            'logging': self.logging,
        }

        for section_name, section_data in config_data.items():
            if section_name == 'providers' and isinstance(section_data, dict):
                for key, overrides in section_data.items():
                    if isinstance(overrides, dict):
                        self.provider_overrides[key] = dict(overrides)
            elif section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration
        for credentials.
        """
        env_mappings = {
            'ACRCLOUD_ACCESS_KEY': 'acrcloud_access_key',
            'ACRCLOUD_ACCESS_SECRET': 'acrcloud_access_secret',
            'AUDD_API_KEY': 'audd_api_key',
            'MUSIXMATCH_API_KEY': 'musixmatch_api_key',
            'LIBRETRANSLATE_API_KEY': 'libretranslate_api_key',
        }

        for env_var, attribute in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setattr(self.credentials, attribute, value)

        log_level = os.getenv('LYRICS_TRANSLATOR_LOG_LEVEL')
        if log_level:
            self.logging.level = log_level

    def _build_providers(self) -> Dict[str, ProviderConfig]:
        """
        Build the immutable provider table

        Starts from DEFAULT_PROVIDERS, applies YAML overrides (base_url,
        timeout_millis, retry_attempts, rate_limit) and attaches credentials.

        Returns:
            Dictionary of provider key to ProviderConfig
        """
        providers = {}
        for key, default in DEFAULT_PROVIDERS.items():
            overrides = self.provider_overrides.get(key, {})
            changes: Dict[str, Any] = {}

            for attribute in ('name', 'base_url', 'timeout_millis', 'retry_attempts'):
                if attribute in overrides:
                    changes[attribute] = overrides[attribute]

            rate_limit = overrides.get('rate_limit')
            if isinstance(rate_limit, dict):
                changes['rate_limit'] = RateLimitConfig(
                    max_requests=int(rate_limit.get('max_requests', default.rate_limit.max_requests)),
                    window_millis=int(rate_limit.get('window_millis', default.rate_limit.window_millis)),
                )

            credential_fields = PROVIDER_CREDENTIALS.get(key, {})
            changes['credentials'] = tuple(
                (name, getattr(self.credentials, attribute))
                for name, attribute in credential_fields.items()
            )

            providers[key] = dataclasses.replace(default, **changes)

        return providers

    def get_provider_config(self, key: str) -> ProviderConfig:
        """
        Get configuration for a provider key

        Raises:
            KeyError: If the provider key is unknown
        """
        return self.providers[key]

    def get_config_directory(self) -> Path:
        return self.config_dir

    def save_config(self, path: Optional[str] = None) -> None:
        """
        Save current configuration to file

        Serializes the current configuration to a YAML file, excluding
        credentials for security.

        Args:
            path: Custom path to save config, defaults to user config directory

        Raises:
            ConfigError: If the configuration cannot be saved
        """
        from ..core.exceptions import ConfigError

        if not path:
            path = self.get_config_directory() / "config.yaml"
        else:
            path = Path(path)

        config_data = {
            'pipeline': dataclasses.asdict(self.pipeline),
            'recognition': dataclasses.asdict(self.recognition),
            'lyrics': dataclasses.asdict(self.lyrics),
            'translation': dataclasses.asdict(self.translation),
            'network': dataclasses.asdict(self.network),
            'logging': dataclasses.asdict(self.logging),
        }
        if self.provider_overrides:
            config_data['providers'] = self.provider_overrides

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save config to {path}: {e}", details={'path': str(path)})

    def validate_credentials(self) -> Dict[str, bool]:
        """
        Report which providers are usable with the configured credentials

        Providers without required credentials always report True.

        Returns:
            Dictionary of provider key to enabled flag
        """
        return {key: config.is_enabled for key, config in self.providers.items()}

    def validate(self) -> bool:
        """
        Validate current configuration

        Logs a warning for every provider disabled by missing credentials and
        for inconsistent values. Configuration is considered valid when at
        least one audio recognition provider is usable, since every other
        stage has unauthenticated fallbacks.

        Returns:
            True if configuration is valid, False otherwise
        """
        warnings = []

        for key, config in self.providers.items():
            if not config.is_enabled:
                missing = ", ".join(config.missing_credentials)
                warnings.append(f"{config.name} disabled: missing {missing}")

        for stage, section in (('recognition', self.recognition),
                               ('lyrics', self.lyrics),
                               ('translation', self.translation)):
            for provider in section.providers:
                if f"{stage}_{provider}" not in self.providers:
                    warnings.append(f"Unknown {stage} provider: {provider}")

        if self.pipeline.max_retries < 1:
            warnings.append(f"Invalid pipeline.max_retries: {self.pipeline.max_retries}")

        has_recognition = any(
            self.providers[f"recognition_{name}"].is_enabled
            for name in self.recognition.providers
            if f"recognition_{name}" in self.providers
        )
        if not has_recognition:
            warnings.append("No audio recognition services configured - only manual song input will work")

        for warning in warnings:
            logger.warning(warning)

        return has_recognition and self.pipeline.max_retries >= 1

    def __str__(self) -> str:
        enabled = [config.name for config in self.providers.values() if config.is_enabled]
        sections = [
            f"Providers: {', '.join(enabled)}",
            f"Retries: {self.pipeline.max_retries}",
            f"Chunk size: {self.translation.chunk_size}",
        ]
        return f"Settings({', '.join(sections)})"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance

    Creates the instance on first access and returns the same instance for
    subsequent calls.

    Returns:
        The global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global _settings
    _settings = Settings(config_path)
    return _settings
