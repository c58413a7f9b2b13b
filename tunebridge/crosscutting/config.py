import os
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from dotenv import dotenv_values

from tunebridge.domain.entities import Interface, Platform, Provider


class ConfigError(Exception):
    """Configuration error."""
    pass


ENV_PREFIX = 'TUNEBRIDGE_'

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_PAGE_SIZE = 20

# Healthy (platform, provider) pairs in probe order. Declaration order is the priority order.
ENABLEMENT_TABLE: Tuple[Tuple[Interface, bool], ...] = (
    (Interface(Platform.WY, Provider.SBY), True),
    (Interface(Platform.QQ, Provider.SBY), True),
    (Interface(Platform.WY, Provider.XF), True),
    (Interface(Platform.KG, Provider.LZ), True),
    (Interface(Platform.KW, Provider.LZ), True),
    (Interface(Platform.WY, Provider.LZ), True),
    (Interface(Platform.KG_SQ, Provider.LZ), True),
    (Interface(Platform.WY, Provider.XZG), True),
    (Interface(Platform.KG, Provider.XZG), True),
    (Interface(Platform.KW, Provider.XZG), True),
    (Interface(Platform.DY, Provider.CGG), True),
    (Interface(Platform.QS, Provider.CGG), True),
    (Interface(Platform.XMLY, Provider.CGG), True),
)

# Response ``code`` values each provider uses for success.
SUCCESS_CODES: Dict[Provider, FrozenSet[int]] = {
    Provider.XF: frozenset({200}),
    Provider.SBY: frozenset({200}),
    Provider.XZG: frozenset({200}),
    Provider.LZ: frozenset({200, 0}),
    Provider.CGG: frozenset({200, 0}),
}


def is_success_code(provider: Provider, code: Any) -> bool:
    """Check a response code against the provider's success table.

    A missing code is accepted; a present one must be listed.
    """
    if code is None or code == '':
        return True
    try:
        value = int(code)
    except (TypeError, ValueError):
        return False
    return value in SUCCESS_CODES.get(Provider(provider), frozenset())


def enabled_interfaces(disabled: Optional[FrozenSet[Interface]] = None) -> List[Interface]:
    """Enabled pairs in declaration order, minus any disabled by deployment."""
    disabled = disabled or frozenset()
    return [iface for iface, enabled in ENABLEMENT_TABLE if enabled and iface not in disabled]


class Settings:
    """Deployment configuration, read once at startup."""

    def __init__(self,
                 base_urls: Optional[Mapping[Provider, str]] = None,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 page_size: int = DEFAULT_PAGE_SIZE,
                 disabled_interfaces: Optional[FrozenSet[Interface]] = None,
                 log_level: str = 'INFO',
                 split_threshold: Optional[float] = None,
                 combined_threshold: Optional[float] = None,
                 field_threshold: Optional[float] = None):
        self.base_urls: Dict[Provider, str] = {
            Provider(p): url.rstrip('/') for p, url in (base_urls or {}).items() if url
        }
        self.timeout = timeout
        self.page_size = page_size
        self.disabled_interfaces = frozenset(disabled_interfaces or ())
        self.log_level = log_level
        self.split_threshold = split_threshold
        self.combined_threshold = combined_threshold
        self.field_threshold = field_threshold

    @classmethod
    def from_env(cls, env_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from an optional .env file overlaid by the environment."""
        values: Dict[str, str] = {}
        if env_file:
            path = Path(env_file)
            if not path.exists():
                raise ConfigError(f"Env file not found: {env_file}")
            values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
        source = os.environ if environ is None else environ
        values.update({k: v for k, v in source.items() if k.startswith(ENV_PREFIX)})

        base_urls = {}
        for provider in Provider:
            url = values.get(f"{ENV_PREFIX}{provider.name}_BASE_URL", '').strip()
            if url:
                if not urlsplit(url).scheme:
                    raise ConfigError(f"{ENV_PREFIX}{provider.name}_BASE_URL must be an absolute URL: {url}")
                base_urls[provider] = url

        return cls(
            base_urls=base_urls,
            timeout=_parse_number(values, 'TIMEOUT', float, DEFAULT_TIMEOUT_SECONDS),
            page_size=_parse_number(values, 'PAGE_SIZE', int, DEFAULT_PAGE_SIZE),
            disabled_interfaces=_parse_interfaces(values.get(f"{ENV_PREFIX}DISABLED_INTERFACES", '')),
            log_level=values.get(f"{ENV_PREFIX}LOG_LEVEL", 'INFO').upper(),
            split_threshold=_parse_number(values, 'SPLIT_THRESHOLD', float, None),
            combined_threshold=_parse_number(values, 'COMBINED_THRESHOLD', float, None),
            field_threshold=_parse_number(values, 'FIELD_THRESHOLD', float, None),
        )

    def base_url_for(self, provider: Provider) -> str:
        url = self.base_urls.get(Provider(provider))
        if not url:
            raise ConfigError(f"{ENV_PREFIX}{Provider(provider).name}_BASE_URL is not configured")
        return url

    @property
    def configured_providers(self) -> List[Provider]:
        return [p for p in Provider if p in self.base_urls]

    def interfaces(self) -> List[Interface]:
        return enabled_interfaces(self.disabled_interfaces)

    def summary(self) -> Dict[str, Any]:
        """Get configuration summary (hosts only, no paths or query strings)."""
        return {
            'providers': {p.value: urlsplit(url).netloc for p, url in self.base_urls.items()},
            'timeout': self.timeout,
            'page_size': self.page_size,
            'interfaces': [i.label for i in self.interfaces()],
            'disabled_interfaces': sorted(i.label for i in self.disabled_interfaces),
            'log_level': self.log_level,
        }


def _parse_number(values: Mapping[str, str], name: str, kind, default):
    raw = values.get(f"{ENV_PREFIX}{name}")
    if raw is None or not str(raw).strip():
        return default
    try:
        number = kind(str(raw).strip())
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")
    if number <= 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {raw!r}")
    return number


def _parse_interfaces(raw: str) -> FrozenSet[Interface]:
    interfaces = set()
    for label in raw.split(','):
        if not label.strip():
            continue
        try:
            interfaces.add(Interface.parse(label))
        except ValueError:
            raise ConfigError(f"Unknown interface in {ENV_PREFIX}DISABLED_INTERFACES: {label.strip()!r}")
    return frozenset(interfaces)


# Global instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance."""
    global settings
    if settings is None:
        settings = Settings.from_env()
    return settings


def setup_config(env_file: Optional[str] = None) -> Settings:
    """Setup configuration from a custom .env file."""
    global settings
    settings = Settings.from_env(env_file)
    return settings
