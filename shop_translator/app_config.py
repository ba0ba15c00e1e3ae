"""Application configuration module for the translation service."""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import jsonschema
import yaml
from dotenv import load_dotenv

from shop_translator.logging_config import setup_logger

DEFAULT_MODEL_NAME = 'claude-3-haiku-20240307'
DEFAULT_API_BASE_URL = 'https://api.anthropic.com'
DEFAULT_API_VERSION = '2023-06-01'
DEFAULT_SOURCE_LANGUAGE = 'de-DE'

# Shape of config.yaml. Unknown keys are allowed so older files keep working.
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "model_name": {"type": "string"},
        "api_base_url": {"type": "string"},
        "api_version": {"type": "string"},
        "source_language": {"type": "string"},
        "global_system_prompt": {"type": ["string", "null"]},
        "snippet_chunk_size": {"type": "integer", "minimum": 1},
        "file_chunk_size": {"type": "integer", "minimum": 1},
        "max_chunk_tokens": {"type": ["integer", "null"], "minimum": 1},
        "chunk_delay_seconds": {"type": "number", "minimum": 0},
        "overwrite_existing": {"type": "boolean"},
        "request_timeout": {"type": "number", "exclusiveMinimum": 0},
        "metadata_timeout": {"type": "number", "exclusiveMinimum": 0},
        "dry_run": {"type": "boolean"},
        "show_progress": {"type": "boolean"},
        "snippet_directory": {"type": "string"},
        "target_locales": {"type": "array", "items": {"type": "string"}},
        "logging": {
            "type": "object",
            "properties": {
                "log_level": {"type": "string"},
                "log_file_path": {"type": "string"},
                "log_to_console": {"type": "boolean"},
                "module_levels": {"type": "object", "additionalProperties": {"type": "string"}},
            },
        },
    },
}


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Provider
    api_key: Optional[str]
    model_name: str = DEFAULT_MODEL_NAME
    api_base_url: str = DEFAULT_API_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = 120.0
    metadata_timeout: float = 30.0

    # Translation behaviour
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    global_system_prompt: Optional[str] = None
    overwrite_existing: bool = False

    # Chunking
    snippet_chunk_size: int = 50
    file_chunk_size: int = 50
    max_chunk_tokens: Optional[int] = 6000
    chunk_delay_seconds: float = 1.0

    # Processing settings
    dry_run: bool = False
    show_progress: bool = True

    # Snippet files
    project_root: str = ''
    snippet_directory: str = ''
    target_locales: List[str] = field(default_factory=list)


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
    """Load and validate the YAML configuration file, falling back to defaults on any problem."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('TRANSLATOR_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            print(f"Tip: Create a config.yaml file in '{project_root}' or set TRANSLATOR_CONFIG_FILE environment variable.",
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
                jsonschema.validate(instance=loaded_config, schema=CONFIG_SCHEMA)
                config = loaded_config
                print(f"Successfully loaded configuration from: {config_file}", file=sys.stderr)
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except jsonschema.ValidationError as e:
        print(f"Error: Invalid value in configuration file '{config_file}': {e.message}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)
    except (OSError, IOError) as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging', {})
    log_level_str = log_config.get('log_level', 'INFO').upper()
    log_file_path = log_config.get('log_file_path', 'logs/translation_log.log')
    log_to_console = log_config.get('log_to_console', True)
    module_levels = log_config.get('module_levels') or {}
    return setup_logger(log_level_str, log_file_path, log_to_console, module_levels)


def _log_dotenv_status(logger: logging.Logger, project_root: str) -> None:
    """Log the status of .env file loading."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        logger.info("Loaded environment variables from: %s", dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        logger.info("Loaded environment variables from: %s", dotenv_path_docker_dir)
    else:
        logger.info(
            "No .env file found in project root ('%s') or in docker/ ('%s'). Relying on system environment variables if any.",
            dotenv_path_project_root,
            dotenv_path_docker_dir
        )


def _read_api_key(dry_run: bool, logger: logging.Logger) -> Optional[str]:
    """Read the provider API key from the environment."""
    api_key = os.environ.get('ANTHROPIC_API_KEY') or None
    if api_key is None:
        if dry_run:
            logger.info("Running in dry-run mode without ANTHROPIC_API_KEY.")
        else:
            logger.warning("ANTHROPIC_API_KEY environment variable not found. Translation calls will fail.")
    elif not api_key.startswith('sk-ant-'):
        logger.warning("Warning: ANTHROPIC_API_KEY does not start with 'sk-ant-'. This may be invalid.")
    return api_key


def load_app_config() -> AppConfig:
    """
    Load application configuration from YAML file and environment variables.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()
    _load_dotenv_files(project_root)
    config = _load_yaml_config(project_root)

    logger = _setup_logger_from_config(config)
    _log_dotenv_status(logger, project_root)

    dry_run = config.get('dry_run', False)
    model_name = os.environ.get('CLAUDE_MODEL', config.get('model_name', DEFAULT_MODEL_NAME))

    default_file_chunk_size = config.get('file_chunk_size', 50)
    file_chunk_size = int(os.environ.get('FILE_CHUNK_SIZE', default_file_chunk_size))

    snippet_directory = config.get('snippet_directory', os.path.join(project_root, 'snippets'))
    if not os.path.isabs(snippet_directory):
        snippet_directory = os.path.join(project_root, snippet_directory)

    return AppConfig(
        api_key=_read_api_key(dry_run, logger),
        model_name=model_name,
        api_base_url=config.get('api_base_url', DEFAULT_API_BASE_URL),
        api_version=config.get('api_version', DEFAULT_API_VERSION),
        request_timeout=float(config.get('request_timeout', 120)),
        metadata_timeout=float(config.get('metadata_timeout', 30)),
        source_language=config.get('source_language', DEFAULT_SOURCE_LANGUAGE),
        global_system_prompt=config.get('global_system_prompt'),
        overwrite_existing=config.get('overwrite_existing', False),
        snippet_chunk_size=config.get('snippet_chunk_size', 50),
        file_chunk_size=file_chunk_size,
        max_chunk_tokens=config.get('max_chunk_tokens', 6000),
        chunk_delay_seconds=float(config.get('chunk_delay_seconds', 1.0)),
        dry_run=dry_run,
        show_progress=config.get('show_progress', True),
        project_root=project_root,
        snippet_directory=snippet_directory,
        target_locales=config.get('target_locales', []),
    )
