"""Application configuration module for the translation reviewer."""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Any

import yaml
from dotenv import load_dotenv

from translation_reviewer import logging_config

DEFAULT_STORAGE_FILE_PATH = os.path.join("~", ".translation_reviewer", "storage.json")

DEFAULT_SUPPORTED_LOCALES = [
    {"code": "es", "name": "Spanish"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "it", "name": "Italian"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "ru", "name": "Russian"},
    {"code": "zh", "name": "Chinese"},
    {"code": "ja", "name": "Japanese"},
    {"code": "ko", "name": "Korean"},
    {"code": "ar", "name": "Arabic"},
    {"code": "hi", "name": "Hindi"},
]


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    project_root: str

    # Language configuration
    source_language: str
    default_target_language: str
    language_codes: Dict[str, str]
    name_to_code: Dict[str, str]

    # Storage and export
    storage_file_path: str
    export_file_name: str

    # Logging
    log_level: str
    log_file_path: str
    log_to_console: bool

    def language_display_name(self, language_tag: str) -> str:
        """Display name for a language tag; free-text tags are shown as entered."""
        return self.language_codes.get(language_tag, language_tag)


def _compute_project_root() -> str:
    """Compute the project root directory."""
    script_real_path = os.path.realpath(__file__)
    script_dir = os.path.dirname(script_real_path)
    return os.path.abspath(os.path.join(script_dir, os.pardir))


def _load_dotenv_files(project_root: str) -> None:
    """Load .env files from project root or docker directory."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        load_dotenv(dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        load_dotenv(dotenv_path_docker_dir)


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load YAML configuration file with error handling and path resolution."""
    # If TRANSLATION_REVIEWER_CONFIG_FILE is set (potentially from .env), use it; otherwise, default to 'config.yaml'.
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('TRANSLATION_REVIEWER_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except (OSError, IOError) as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _build_language_mappings(locales_list: List[Dict[str, str]]) -> tuple[Dict[str, str], Dict[str, str]]:
    """Build language code mappings from supported locales."""
    language_codes: Dict[str, str] = {}
    name_to_code: Dict[str, str] = {}

    for locale in locales_list:
        code = locale.get('code')
        name = locale.get('name')
        if code and name:
            language_codes[code] = name
            name_to_code[name.lower()] = code

    return language_codes, name_to_code


def _log_dotenv_status(logger: logging.Logger, project_root: str) -> None:
    """Log the status of .env file loading."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        logger.debug("Loaded environment variables from: %s", dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        logger.debug("Loaded environment variables from: %s", dotenv_path_docker_dir)


def load_app_config() -> AppConfig:
    """
    Load application configuration from YAML file and environment variables.

    Environment variables take precedence over values from the YAML file.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()
    _load_dotenv_files(project_root)
    config = _load_yaml_config(project_root)

    log_config = config.get('logging', {}) or {}
    log_level = os.environ.get('TRANSLATION_REVIEWER_LOG_LEVEL', log_config.get('log_level', 'WARNING')).upper()
    log_file_path = os.environ.get(
        'TRANSLATION_REVIEWER_LOG_FILE',
        log_config.get('log_file_path', 'logs/translation_reviewer.log')
    )
    log_to_console = log_config.get('log_to_console', True)
    logger = logging_config.setup_logger(log_level, log_file_path, log_to_console)

    _log_dotenv_status(logger, project_root)

    locales_list = config.get('supported_locales', DEFAULT_SUPPORTED_LOCALES)
    language_codes, name_to_code = _build_language_mappings(locales_list)

    storage_file_path = os.environ.get(
        'TRANSLATION_REVIEWER_STORAGE',
        config.get('storage_file_path', DEFAULT_STORAGE_FILE_PATH)
    )

    return AppConfig(
        project_root=project_root,
        source_language=config.get('source_language', 'en'),
        default_target_language=os.environ.get(
            'TRANSLATION_REVIEWER_TARGET_LANGUAGE',
            config.get('default_target_language', 'es')
        ),
        language_codes=language_codes,
        name_to_code=name_to_code,
        storage_file_path=os.path.expanduser(storage_file_path),
        export_file_name=config.get('export_file_name', 'translations.json'),
        log_level=log_level,
        log_file_path=log_file_path,
        log_to_console=log_to_console,
    )
