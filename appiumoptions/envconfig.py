"""Environment and file-based configuration for Appium options.

This module provides utilities to load Appium option profiles from TOML files
and environment variables. A file holds any number of ``[profile.<name>]``
tables::

    [profile.default]
    platform_name = "Android"
    automation_name = "UiAutomator2"
    device_name = "emulator-5554"

    [profile.default.appium_options]
    newCommandTimeout = 120

    [profile.default.global_options]
    "custom:flag" = true
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union, cast

from typing_extensions import Self, TypeAlias, TypedDict

from appiumoptions.capabilities import ComplianceRegistry
from appiumoptions.exceptions import ConfigError
from appiumoptions.options import AppiumOptions

logger = logging.getLogger(__name__)

DataSource: TypeAlias = Union[
    Path, str, bytes
]  # str represents a file contents, bytes represents raw data

DEFAULT_PROFILE = "default"

CONFIG_FILE_ENV_VAR = "APPIUM_CONFIG_FILE"
CONFIG_PROFILE_ENV_VAR = "APPIUM_CONFIG_PROFILE"

# Environment variable for each overridable profile field
_ENV_OVERRIDES = {
    "platform_name": "APPIUM_PLATFORM_NAME",
    "platform_version": "APPIUM_PLATFORM_VERSION",
    "automation_name": "APPIUM_AUTOMATION_NAME",
    "device_name": "APPIUM_DEVICE_NAME",
    "app": "APPIUM_APP",
    "browser_name": "APPIUM_BROWSER_NAME",
}


# We define a typed dictionary for what a profile looks like as TOML.
class OptionsProfileDict(TypedDict, total=False):
    """Dictionary representation of an options profile for TOML."""

    platform_name: str
    platform_version: str
    automation_name: str
    device_name: str
    app: str
    browser_name: str
    appium_options: Mapping[str, Any]
    global_options: Mapping[str, Any]


_PROFILE_KEYS = frozenset(OptionsProfileDict.__annotations__)
_TABLE_KEYS = ("appium_options", "global_options")
_STRING_KEYS = tuple(sorted(_PROFILE_KEYS.difference(_TABLE_KEYS)))


def _default_config_file() -> Path:
    return Path.home() / ".config" / "appiumoptions" / "options.toml"


def _read_source(source: Optional[DataSource]) -> Optional[bytes]:
    if source is None:
        return None
    if isinstance(source, Path):
        with open(source, "rb") as f:
            return f.read()
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, bytes):
        return source
    raise TypeError(
        "Source must be one of pathlib.Path, str, or bytes, "
        f"but got {type(source).__name__}"
    )


def _resolve_source(
    config_source: Optional[DataSource], env_vars: Mapping[str, str]
) -> Optional[DataSource]:
    if config_source is not None:
        return config_source
    env_file = env_vars.get(CONFIG_FILE_ENV_VAR)
    if env_file:
        return Path(env_file)
    default_file = _default_config_file()
    if default_file.is_file():
        return default_file
    return None


def _validate_profile_values(name: str, raw: Mapping[str, Any]) -> None:
    for key in _STRING_KEYS:
        if key in raw and not isinstance(raw[key], str):
            raise ConfigError(f"Profile {name} key {key} must be a string")
    for key in _TABLE_KEYS:
        if key in raw and not isinstance(raw[key], dict):
            raise ConfigError(f"Profile {name} key {key} must be a table")


def _load_profiles(
    config_source: Optional[DataSource],
    *,
    config_file_strict: bool,
    env_vars: Mapping[str, str],
) -> Dict[str, OptionsProfileDict]:
    source = _resolve_source(config_source, env_vars)
    try:
        data = _read_source(source)
    except OSError as err:
        raise ConfigError(f"Unable to read config file {source}") from err
    if data is None:
        return {}
    try:
        doc = tomllib.loads(data.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as err:
        raise ConfigError("Invalid TOML in options config") from err

    profiles = doc.get("profile", {})
    if not isinstance(profiles, dict):
        raise ConfigError("The profile key must be a table of profiles")
    for name, raw in profiles.items():
        if not isinstance(raw, dict):
            raise ConfigError(f"Profile {name} must be a table")
        _validate_profile_values(name, raw)
        if config_file_strict:
            unknown = sorted(set(raw) - _PROFILE_KEYS)
            if unknown:
                raise ConfigError(
                    f"Unrecognized keys in profile {name}: {', '.join(unknown)}"
                )
    logger.debug(
        "Loaded options profiles %s from %s",
        list(profiles),
        source if isinstance(source, Path) else "<data>",
    )
    return cast(Dict[str, OptionsProfileDict], profiles)


@dataclass(frozen=True)
class OptionsProfile:
    """Represents an options profile.

    This class holds the options as loaded from a file or environment. See
    `to_appium_options` to turn the profile into :py:class:`AppiumOptions`.
    """

    platform_name: Optional[str] = None
    """Platform name, e.g. ``Android`` or ``iOS``."""
    platform_version: Optional[str] = None
    """Platform version."""
    automation_name: Optional[str] = None
    """Appium automation driver name."""
    device_name: Optional[str] = None
    """Device name."""
    app: Optional[str] = None
    """Path or URL of the application under test."""
    browser_name: Optional[str] = None
    """Browser name for web sessions."""
    appium_options: Mapping[str, Any] = field(default_factory=dict)
    """Additional Appium options."""
    global_options: Mapping[str, Any] = field(default_factory=dict)
    """Additional global options."""

    @classmethod
    def from_dict(cls, d: OptionsProfileDict) -> Self:
        """Create an OptionsProfile from a dictionary."""
        return cls(
            platform_name=d.get("platform_name"),
            platform_version=d.get("platform_version"),
            automation_name=d.get("automation_name"),
            device_name=d.get("device_name"),
            app=d.get("app"),
            browser_name=d.get("browser_name"),
            appium_options=d.get("appium_options") or {},
            global_options=d.get("global_options") or {},
        )

    def to_dict(self) -> OptionsProfileDict:
        """Convert to a dictionary that can be used for TOML serialization."""
        d: OptionsProfileDict = {}
        if self.platform_name is not None:
            d["platform_name"] = self.platform_name
        if self.platform_version is not None:
            d["platform_version"] = self.platform_version
        if self.automation_name is not None:
            d["automation_name"] = self.automation_name
        if self.device_name is not None:
            d["device_name"] = self.device_name
        if self.app is not None:
            d["app"] = self.app
        if self.browser_name is not None:
            d["browser_name"] = self.browser_name
        if self.appium_options:
            d["appium_options"] = self.appium_options
        if self.global_options:
            d["global_options"] = self.global_options
        return d

    def to_appium_options(
        self, registry: Optional[ComplianceRegistry] = None
    ) -> AppiumOptions:
        """Create :py:class:`AppiumOptions` from this profile.

        Raises:
            InvalidArgumentError: An additional option uses a name reserved by
                a typed option.
        """
        options = AppiumOptions(registry=registry)
        options.platform_name = self.platform_name
        options.platform_version = self.platform_version
        options.automation_name = self.automation_name
        options.device_name = self.device_name
        options.app = self.app
        options.browser_name = self.browser_name
        for name, value in self.appium_options.items():
            options.add_additional_appium_option(name, value)
        for name, value in self.global_options.items():
            options.add_additional_option(name, value)
        return options

    @staticmethod
    def load(
        profile: Optional[str] = None,
        *,
        config_source: Optional[DataSource] = None,
        disable_file: bool = False,
        disable_env: bool = False,
        config_file_strict: bool = False,
        override_env_vars: Optional[Mapping[str, str]] = None,
    ) -> OptionsProfile:
        """Load a single options profile from given sources, applying env
        overrides.

        Args:
            profile: Profile to load from the config. If not present, the
                ``APPIUM_CONFIG_PROFILE`` environment variable is used, then
                ``default``.
            config_source: If present, this is used as the configuration source
                instead of default file locations. This can be a path to the file
                or the string/byte contents of the file.
            disable_file: If true, file loading is disabled. This is only used
                when ``config_source`` is not present.
            disable_env: If true, environment variable loading and overriding
                is disabled. This takes precedence over the ``override_env_vars``
                parameter.
            config_file_strict: If true, will error on unrecognized keys.
            override_env_vars: The environment to use for loading and overrides.
                If not provided, the current process's environment is used.

        Returns:
            The options profile.

        Raises:
            ConfigError: The config could not be read or parsed, or an
                explicitly requested profile does not exist.
        """
        env_vars: Mapping[str, str] = {}
        if not disable_env:
            env_vars = (
                override_env_vars if override_env_vars is not None else os.environ
            )

        profiles: Dict[str, OptionsProfileDict] = {}
        if config_source is not None or not disable_file:
            profiles = _load_profiles(
                config_source,
                config_file_strict=config_file_strict,
                env_vars=env_vars,
            )

        profile_name = profile or env_vars.get(CONFIG_PROFILE_ENV_VAR)
        if profile_name and profile_name != DEFAULT_PROFILE:
            if profile_name not in profiles:
                raise ConfigError(f"Profile {profile_name} not found in config")
        raw: Dict[str, Any] = dict(profiles.get(profile_name or DEFAULT_PROFILE, {}))

        for key, env_var in _ENV_OVERRIDES.items():
            value = env_vars.get(env_var)
            if value:
                raw[key] = value
        return OptionsProfile.from_dict(cast(OptionsProfileDict, raw))


@dataclass
class OptionsConfig:
    """Options configuration loaded from TOML.

    This contains a mapping of profile names to options profiles. See
    `OptionsProfile.load` to load an individual profile with environment
    overrides applied.
    """

    profiles: Mapping[str, OptionsProfile]
    """Map of profile name to its corresponding OptionsProfile."""

    def to_dict(self) -> Mapping[str, OptionsProfileDict]:
        """Convert to a dictionary that can be used for TOML serialization."""
        return {k: v.to_dict() for k, v in self.profiles.items()}

    @classmethod
    def from_dict(cls, d: Mapping[str, Mapping[str, Any]]) -> Self:
        """Create an OptionsConfig from a dictionary."""
        return cls(
            profiles={
                k: OptionsProfile.from_dict(cast(OptionsProfileDict, v))
                for k, v in d.items()
            }
        )

    @staticmethod
    def load(
        *,
        config_source: Optional[DataSource] = None,
        config_file_strict: bool = False,
        override_env_vars: Optional[Mapping[str, str]] = None,
    ) -> OptionsConfig:
        """Load all options profiles from given sources.

        This does not apply environment variable overrides to the profiles, it
        only uses an environment variable to find the default config file path
        (``APPIUM_CONFIG_FILE``).

        Args:
            config_source: If present, this is used as the configuration source
                instead of default file locations. This can be a path to the file
                or the string/byte contents of the file.
            config_file_strict: If true, will error on unrecognized keys.
            override_env_vars: The environment variables to use for locating the
                default config file. If not provided, the current process's
                environment is used.
        """
        env_vars = override_env_vars if override_env_vars is not None else os.environ
        return OptionsConfig.from_dict(
            _load_profiles(
                config_source,
                config_file_strict=config_file_strict,
                env_vars=env_vars,
            )
        )
