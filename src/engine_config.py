"""Settings loading and engine construction for host applications.

Settings come from an optional YAML/JSON file, then environment overrides
(highest precedence), then built-in defaults from ``Constants``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from importlib import metadata
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from catalog.client import CatalogClient
from engine.decision import CheckResult, DecisionEngine, NOT_DUE
from engine.scheduler import CheckCadence
from policy.alert import AlertConfig
from state.store import JsonFileSkipStore

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")


def _as_bool(value: Any) -> bool:
    """Interpret config booleans; strings use the same words as the env switches."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


@dataclass
class EngineSettings:
    """Everything a host needs to run update checks for one application."""

    app_identifier: str = ""
    country_code: Optional[str] = None
    installed_version: Optional[str] = None
    distribution: Optional[str] = None
    cadence: CheckCadence = CheckCadence.IMMEDIATELY
    alerts: AlertConfig = field(default_factory=AlertConfig)
    catalog_url: str = Constants.CATALOG_LOOKUP_URL
    request_timeout: float = Constants.REQUEST_TIMEOUT
    state_path: Optional[str] = None
    enabled: bool = True


def _read_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML or JSON mapping; JSON is chosen by the ``.json`` extension."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ValueError(f"Cannot read config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    # Allow the settings to live under a top-level section of a shared file.
    section = data.get("relnotify")
    return section if isinstance(section, dict) else data


def settings_from_mapping(data: Dict[str, Any]) -> EngineSettings:
    """Build settings from a parsed config mapping.

    Raises ValueError for unknown cadence or alert behavior names.
    """
    settings = EngineSettings()
    if data.get("app_identifier") is not None:
        settings.app_identifier = str(data["app_identifier"]).strip()
    if data.get("country_code"):
        settings.country_code = str(data["country_code"]).strip()
    if data.get("installed_version") is not None:
        settings.installed_version = str(data["installed_version"]).strip()
    if data.get("distribution"):
        settings.distribution = str(data["distribution"]).strip()
    if data.get("cadence") is not None:
        settings.cadence = CheckCadence.from_value(data["cadence"])

    alerts = data.get("alerts")
    if isinstance(alerts, dict):
        settings.alerts = AlertConfig.from_mapping(alerts)
    elif isinstance(alerts, str):
        settings.alerts = AlertConfig.uniform(alerts)

    if data.get("catalog_url"):
        settings.catalog_url = str(data["catalog_url"]).strip()
    if data.get("request_timeout") is not None:
        settings.request_timeout = float(data["request_timeout"])
    if data.get("state_path"):
        settings.state_path = os.path.expanduser(str(data["state_path"]))
    if data.get("enabled") is not None:
        settings.enabled = _as_bool(data["enabled"])
    return settings


def apply_env_overrides(settings: EngineSettings, environ: Optional[Dict[str, str]] = None) -> EngineSettings:
    """Apply environment overrides in place and return ``settings``."""
    env = os.environ if environ is None else environ
    catalog_url = env.get(Constants.ENV_CATALOG_URL)
    if catalog_url and catalog_url.strip():
        settings.catalog_url = catalog_url.strip()
    state_dir = env.get(Constants.ENV_STATE_DIR)
    if state_dir and state_dir.strip() and not settings.state_path:
        settings.state_path = os.path.join(state_dir.strip(), Constants.STATE_FILE)
    if str(env.get(Constants.ENV_DISABLE, "")).strip().lower() in _TRUTHY:
        settings.enabled = False
    return settings


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> EngineSettings:
    """Load settings from ``path`` (YAML or JSON) plus environment overrides.

    A missing ``path`` yields defaults; an unreadable explicit file raises.
    """
    data: Dict[str, Any] = {}
    if path:
        data = _read_config_file(path)
        logger.debug("Loaded settings from %s", path)
    return apply_env_overrides(settings_from_mapping(data), environ)


def resolve_installed_version(settings: EngineSettings) -> str:
    """Return the running application's version.

    An explicit ``installed_version`` wins; otherwise the metadata of the
    installed ``distribution`` is consulted.
    """
    if settings.installed_version:
        return settings.installed_version
    if settings.distribution:
        try:
            return metadata.version(settings.distribution)
        except metadata.PackageNotFoundError as exc:
            raise ValueError(f"Distribution {settings.distribution!r} is not installed") from exc
    raise ValueError("Either installed_version or distribution must be configured")


def build_engine(settings: EngineSettings, clock=None) -> DecisionEngine:
    """Construct a DecisionEngine wired with a catalog client and file store."""
    catalog = CatalogClient(lookup_url=settings.catalog_url, timeout=settings.request_timeout)
    store = JsonFileSkipStore(settings.state_path)
    kwargs = {"clock": clock} if clock is not None else {}
    return DecisionEngine(catalog, store, resolve_installed_version(settings), **kwargs)


async def check_if_enabled(engine: DecisionEngine, settings: EngineSettings) -> CheckResult:
    """Run a check with the configured parameters unless checks are disabled."""
    if not settings.enabled:
        logger.debug("Update checks disabled by configuration")
        return NOT_DUE
    return await engine.check_for_update(
        settings.app_identifier,
        settings.country_code,
        settings.cadence,
        settings.alerts,
    )
