from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path

from loguru import logger
from pydantic import BaseModel

from src.roster.runtime.config.config_data import ConfigData
from src.roster.runtime.config.config_template import load_templated_yaml
from src.roster.runtime.settings import EnvironmentVariables


@dataclass
class AppContext:
    """Application context containing configuration and other app-wide state."""

    config: ConfigData


def load_default_config() -> ConfigData:
    """Load config.yaml (or ``ROSTER_CONFIG_FILE``) and apply process settings.

    A missing file yields the built-in defaults so the CLI works from any
    directory.
    """
    env = EnvironmentVariables()
    path = Path(env.config_file)
    if path.exists():
        config = load_templated_yaml(path, env.environment)
    else:
        logger.warning("Configuration file {} not found; using defaults", path)
        config = ConfigData()
        config.app.environment = env.environment

    if env.log_level:
        config.logging.level = env.log_level
    return config


# Global configuration instance
_default_config = load_default_config()
_default_context = AppContext(config=_default_config)


# Context variable for application context
_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=_default_context
)


def get_context() -> AppContext:
    """Return the context active in the current task or thread."""
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Make ``context`` current; pass the returned token to reset it."""
    return _app_context.set(context)


def _touched(model: BaseModel) -> bool:
    """True when ``model`` or any section nested in it had a field assigned."""
    return bool(model.model_fields_set) or any(
        isinstance(value, BaseModel) and _touched(value) for _, value in model
    )


def _overlay(base: BaseModel, override: BaseModel) -> dict:
    """Dump ``base`` with the fields assigned on ``override`` applied on top.

    Sections are merged field by field, so overriding ``storage.path`` keeps
    the rest of ``storage`` from ``base``. A section passed whole but left
    at its defaults replaces the base section entirely.
    """
    merged = base.model_dump()
    for name, value in override:
        current = getattr(base, name, None)
        if isinstance(value, BaseModel) and isinstance(current, BaseModel) and _touched(value):
            merged[name] = _overlay(current, value)
        elif name in override.model_fields_set:
            merged[name] = value.model_dump() if isinstance(value, BaseModel) else value
    return merged


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Temporarily run with ``config_override`` layered over the current config.

    Only fields explicitly set on ``config_override`` replace the current
    values; everything else is inherited from the parent context.

    Example:
        override = ConfigData(storage=StorageConfig(path="/tmp/roster.json"))
        with with_context(override):
            config = get_config()
            assert config.storage.path == "/tmp/roster.json"
            # config.users and config.app are inherited unchanged
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    current = get_context()
    merged = ConfigData.model_validate(_overlay(current.config, config_override))
    token = set_context(replace(current, config=merged))
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the whole configuration of the current context."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    """Shortcut for ``get_context().config``."""
    return get_context().config
