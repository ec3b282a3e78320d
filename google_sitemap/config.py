"""
Configuration loader for the sitemap generator.
Handles environment variables and YAML defaults configuration.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, fields, replace
import yaml
from dotenv import load_dotenv

from google_sitemap.errors import ConfigurationError
from google_sitemap.logging_config import get_logger

# Load environment variables
load_dotenv()

logger = get_logger("config")

# Google sitemap protocol limit
MAX_SITEMAP_URLS = 50000

SITEMAP_TYPES = ("xml", "news")
OUTPUT_MODES = ("file", "memory")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class GeneratorConfig:
    """Settings for one sitemap generation run."""
    hostname: str
    https_urls: bool = True
    filename_prefix: str = "sitemap"
    gzip: bool = False
    output_directory: str = "."
    output_mode: str = "file"  # 'file' or 'memory'
    max_entries_per_file: int = MAX_SITEMAP_URLS
    use_hostname_prefix: bool = True
    sitemap_type: str = "xml"  # 'xml' or 'news'

    # Logging
    log_level: str = "INFO"

    # Supabase settings (only needed for table-backed row sources)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    def __post_init__(self):
        self.hostname = normalize_hostname(self.hostname)

    @property
    def scheme(self) -> str:
        return "https" if self.https_urls else "http"

    @property
    def base_url(self) -> str:
        """Scheme and host, without a trailing slash."""
        return f"{self.scheme}://{self.hostname}"

    @property
    def file_extension(self) -> str:
        return ".xml.gz" if self.gzip else ".xml"

    def sitemap_filename(self, sequence: int) -> str:
        """Filename of the N-th urlset file (1-based)."""
        return f"{self.filename_prefix}{sequence}{self.file_extension}"

    @property
    def index_filename(self) -> str:
        return f"{self.filename_prefix}.xml"

    def validate(self) -> "GeneratorConfig":
        """
        Check option values.

        Raises:
            ConfigurationError: on the first invalid option
        """
        if not self.hostname:
            raise ConfigurationError("hostname cannot be empty")

        if not self.filename_prefix:
            raise ConfigurationError("filename_prefix cannot be empty")
        if "/" in self.filename_prefix or "\\" in self.filename_prefix or os.sep in self.filename_prefix:
            raise ConfigurationError(
                f"filename_prefix must not contain path separators: {self.filename_prefix!r}"
            )

        if isinstance(self.max_entries_per_file, bool) or not isinstance(self.max_entries_per_file, int):
            raise ConfigurationError("max_entries_per_file must be an integer")
        if self.max_entries_per_file <= 0:
            raise ConfigurationError("max_entries_per_file must be greater than zero")
        if self.max_entries_per_file > MAX_SITEMAP_URLS:
            logger.warning(
                f"max_entries_per_file={self.max_entries_per_file} exceeds the "
                f"{MAX_SITEMAP_URLS} URL limit crawlers accept per sitemap"
            )

        if self.sitemap_type not in SITEMAP_TYPES:
            raise ConfigurationError(
                f"sitemap_type must be one of {', '.join(SITEMAP_TYPES)}, got {self.sitemap_type!r}"
            )
        if self.output_mode not in OUTPUT_MODES:
            raise ConfigurationError(
                f"output_mode must be one of {', '.join(OUTPUT_MODES)}, got {self.output_mode!r}"
            )

        return self

    def with_options(self, **options: Any) -> "GeneratorConfig":
        """Return a validated copy with the given options replaced."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration option(s): {', '.join(unknown)}")
        return replace(self, **options).validate()

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if mask_secrets and data.get("supabase_key"):
            data["supabase_key"] = "****"
        return data

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "GeneratorConfig":
        """Load configuration from environment and YAML file (defaults only)."""
        values: Dict[str, Any] = {
            "hostname": os.getenv("SITEMAP_HOSTNAME", ""),
            "https_urls": _env_bool("SITEMAP_HTTPS", True),
            "filename_prefix": os.getenv("SITEMAP_PREFIX", "sitemap"),
            "gzip": _env_bool("SITEMAP_GZIP", False),
            "output_directory": os.getenv("SITEMAP_OUTPUT_DIR", "."),
            "output_mode": os.getenv("SITEMAP_OUTPUT_MODE", "file"),
            "use_hostname_prefix": _env_bool("SITEMAP_USE_HOSTNAME_PREFIX", True),
            "sitemap_type": os.getenv("SITEMAP_TYPE", "xml"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "supabase_url": os.getenv("SUPABASE_URL"),
            "supabase_key": os.getenv("SUPABASE_SERVICE_KEY"),
        }

        max_entries = os.getenv("SITEMAP_MAX_ENTRIES")
        if max_entries:
            try:
                values["max_entries_per_file"] = int(max_entries)
            except ValueError:
                raise ConfigurationError(f"SITEMAP_MAX_ENTRIES must be an integer, got {max_entries!r}")

        # YAML values override the environment defaults
        if config_path is None:
            config_path = Path(__file__).parent.parent / "config" / "sitemap.yaml"
        else:
            config_path = Path(config_path)

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}

            section = yaml_config.get("sitemap", {}) or {}
            known = {f.name for f in fields(cls)}
            for key, value in section.items():
                if key not in known:
                    raise ConfigurationError(f"Unknown option {key!r} in {config_path}")
                values[key] = value

            logger.debug(f"Loaded sitemap defaults from {config_path}")

        return cls(**values).validate()


def normalize_hostname(hostname: Optional[str]) -> str:
    """Strip any scheme and trailing slashes: 'https://www.example.com/' -> 'www.example.com'."""
    if not hostname:
        return ""
    host = hostname.strip()
    for scheme in ("https://", "http://"):
        if host.lower().startswith(scheme):
            host = host[len(scheme):]
            break
    return host.rstrip("/")


# Global config instance
_config: Optional[GeneratorConfig] = None


def get_config(config_path: Optional[str] = None) -> GeneratorConfig:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = GeneratorConfig.load(config_path)
    return _config
