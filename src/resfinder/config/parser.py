"""
YAML configuration loading for resource scans.

A configuration file names the project to scan and tunes what counts as a
resource and where usage strings are looked for. Every key is optional:
missing keys take the defaults of `ScanConfig`, and a missing `project_path`
means the current directory. A relative `project_path` is relative to the
file that sets it.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
import logging
from dataclasses import dataclass

from ..errors import ConfigurationError
from ..models.config import (
    ScanConfig,
    validate_config_dict,
    DEFAULT_RESOURCE_SUFFIXES,
    DEFAULT_FILE_SUFFIXES,
    DEFAULT_SIMILAR_PATTERNS,
)


logger = logging.getLogger(__name__)

# Above this per-file read limit a scan may hold very large sources in memory
LARGE_FILE_LIMIT = 50000000


@dataclass
class ConfigParseResult:
    """
    A loaded configuration.

    Attributes:
        config: The validated scan configuration
        warnings: Problems that do not prevent a scan
        config_path: File the configuration came from, None for defaults
        is_default: Whether no file was found
    """
    config: ScanConfig
    warnings: List[str]
    config_path: Optional[Path]
    is_default: bool


class ConfigParser:
    """
    Finds, reads and validates resource scan configuration files.

    Without an explicit path the parser looks for one of DEFAULT_CONFIG_NAMES
    in the current directory, the home directory and `~/.config/resfinder`,
    in that order, and falls back to the defaults.
    """

    DEFAULT_CONFIG_NAMES = [
        '.resfinder.yaml',
        '.resfinder.yml',
        'resfinder.yaml',
        'resfinder.yml'
    ]

    def __init__(self, strict_mode: bool = False):
        """
        Args:
            strict_mode: Raise on configuration warnings instead of returning them
        """
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ConfigParseResult:
        """
        Load a scan configuration.

        Args:
            config_path: Configuration file; searched for when omitted

        Raises:
            ConfigurationError: If the file is missing, malformed or invalid,
                or if it has warnings in strict mode
        """
        try:
            if config_path:
                config_path = Path(config_path)
                if not config_path.exists():
                    raise ConfigurationError(f"Configuration file not found: {config_path}")
                config_data = self._load_yaml_file(config_path)
                is_default = False
            else:
                config_path, config_data = self._find_and_load_config()
                is_default = config_data is None

            scan_config = self._build_config(config_data or {}, config_path)

            warnings = scan_config.validate_configuration()
            warnings.extend(self._get_parser_warnings(scan_config, is_default))
            if self.strict_mode and warnings:
                raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

            self.logger.info(f"Configuration loaded from {config_path or 'defaults'}")
            return ConfigParseResult(
                config=scan_config,
                warnings=warnings,
                config_path=config_path,
                is_default=is_default
            )

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def _build_config(self, config_data: Dict[str, Any], config_path: Optional[Path]) -> ScanConfig:
        """Merge file values over the defaults and build the ScanConfig."""
        merged = self._get_default_config()
        merged.update(self._validate_config_data(config_data))
        if config_path and 'project_path' in config_data:
            merged['project_path'] = self._resolve_project_path(config_data['project_path'], config_path)
        return ScanConfig.from_dict(merged)

    def _resolve_project_path(self, project_path: str, config_path: Path) -> str:
        path = Path(str(project_path)).expanduser()
        if not path.is_absolute():
            path = config_path.parent / path
        return str(path)

    def _find_and_load_config(self) -> tuple[Optional[Path], Optional[Dict[str, Any]]]:
        """
        Returns:
            (path, data) of the first readable configuration file, or (None, None)
        """
        search_paths = [
            Path.cwd(),
            Path.home(),
            Path.home() / '.config' / 'resfinder',
        ]

        for search_path in search_paths:
            for config_name in self.DEFAULT_CONFIG_NAMES:
                config_file = search_path / config_name
                if not config_file.is_file():
                    continue
                try:
                    config_data = self._load_yaml_file(config_file)
                except ConfigurationError as e:
                    self.logger.warning(f"Ignoring {config_file}: {e}")
                    continue
                self.logger.info(f"Found configuration file: {config_file}")
                return config_file, config_data

        self.logger.info("No configuration file found, using defaults")
        return None, None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Read a YAML mapping; an empty file is an empty mapping.

        Raises:
            ConfigurationError: If the file cannot be read, is not YAML or not a mapping
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e

        if data is None:
            self.logger.warning(f"Configuration file is empty: {file_path}")
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a YAML object, got {type(data).__name__}")
        return data

    def _validate_config_data(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return validate_config_dict(config_data)
        except ValueError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            'project_path': str(Path.cwd()),
            'exclude_folders': [],
            'resource_suffixes': list(DEFAULT_RESOURCE_SUFFIXES),
            'file_suffixes': list(DEFAULT_FILE_SUFFIXES),
            'similar_patterns': list(DEFAULT_SIMILAR_PATTERNS),
            'ignore_similar': True,
            'limits': {
                'max_bytes_per_file': 5000000,
                'max_string_length': 256
            }
        }

    def _get_parser_warnings(self, config: ScanConfig, is_default: bool) -> List[str]:
        warnings = []
        if is_default:
            warnings.append("No configuration file found, using default settings")
        if config.limits.max_bytes_per_file > LARGE_FILE_LIMIT:
            warnings.append("Very high max_bytes_per_file limit may cause memory issues")
        return warnings

    def save_config(self, config: ScanConfig, output_path: Union[str, Path]) -> None:
        """
        Write a configuration as commented YAML, creating parent directories.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(self._generate_yaml_with_comments(config.to_dict()))
        except OSError as e:
            raise ConfigurationError(f"Cannot write configuration file {output_path}: {e}") from e

        self.logger.info(f"Configuration saved to {output_path}")

    def _generate_yaml_with_comments(self, config_dict: Dict[str, Any]) -> str:
        lines = [
            "# Unused Resource Finder Configuration",
            "# Which project to scan, which folders to skip and which files count as resources",
            "",
        ]

        sections = [
            ("project_path", "Root directory of the project"),
            ("exclude_folders", "Folder names skipped wherever they occur"),
            ("resource_suffixes", "Suffixes of resource files and bundle directories"),
            ("file_suffixes", "Suffixes of files searched for resource names"),
            ("similar_patterns", "Regular expressions marking the variable part of a resource name"),
            ("ignore_similar", "Treat resources used through a format string as used"),
            ("limits", "Scan limits")
        ]

        for key, comment in sections:
            if key not in config_dict:
                continue
            lines.append(f"# {comment}")
            lines.append(yaml.dump({key: config_dict[key]}, default_flow_style=False, sort_keys=False).rstrip())
            lines.append("")

        return "\n".join(lines)

    def validate_config_file(self, config_path: Union[str, Path]) -> List[str]:
        """
        Check a configuration file the way `load_config` reads it.

        Returns:
            Error messages, empty when the file is valid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            return [f"Configuration file not found: {config_path}"]

        try:
            self._build_config(self._load_yaml_file(config_path), config_path)
        except ConfigurationError as e:
            return [str(e)]
        except ValueError as e:
            # pydantic's ValidationError is a ValueError
            return [f"Invalid configuration: {e}"]
        return []

    def get_config_template(self) -> str:
        """Commented YAML with every option at its default."""
        template_config = self._get_default_config()
        template_config['project_path'] = '.'
        template_config['exclude_folders'] = ['Pods', 'Carthage', 'DerivedData', '.git']
        return self._generate_yaml_with_comments(template_config)


def load_config(config_path: Optional[Union[str, Path]] = None, strict_mode: bool = False) -> ConfigParseResult:
    """Load a scan configuration, see `ConfigParser.load_config`."""
    return ConfigParser(strict_mode=strict_mode).load_config(config_path)


def validate_config_file(config_path: Union[str, Path]) -> List[str]:
    """Validate a configuration file, see `ConfigParser.validate_config_file`."""
    return ConfigParser().validate_config_file(config_path)


def create_config_template(output_path: Union[str, Path]) -> None:
    """
    Write the configuration template to a file.

    Raises:
        ConfigurationError: If the file cannot be written
    """
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(ConfigParser().get_config_template())
    except OSError as e:
        raise ConfigurationError(f"Cannot create template file {output_path}: {e}") from e
