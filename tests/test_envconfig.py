import logging
import textwrap
from pathlib import Path

import pytest

from appiumoptions.capabilities import ComplianceRegistry
from appiumoptions.envconfig import OptionsConfig, OptionsProfile
from appiumoptions.exceptions import ConfigError, InvalidArgumentError

# A base TOML config with a default and a custom profile
TOML_CONFIG_BASE = textwrap.dedent(
    """
    [profile.default]
    platform_name = "Android"
    automation_name = "UiAutomator2"
    device_name = "emulator-5554"

    [profile.custom]
    platform_name = "iOS"
    automation_name = "XCUITest"
    platform_version = "17.2"
    app = "/apps/custom.ipa"
    [profile.custom.appium_options]
    newCommandTimeout = 120
    "custom:record" = true
    [profile.custom.global_options]
    "vendor:flag" = "on"
    """
)

# A TOML config with an unrecognized key for strict testing
TOML_CONFIG_STRICT_FAIL = textwrap.dedent(
    """
    [profile.default]
    platform_name = "Android"
    unrecognized = "should-fail"
    """
)

# Malformed TOML
TOML_CONFIG_MALFORMED = "this is not valid toml"


@pytest.fixture
def base_config_file(tmp_path: Path) -> Path:
    """Fixture to create a temporary config file with base content."""
    config_file = tmp_path / "options.toml"
    config_file.write_text(TOML_CONFIG_BASE)
    return config_file


def test_load_profile_from_file_default(base_config_file: Path):
    """Test loading the default profile from a file."""
    profile = OptionsProfile.load(config_source=base_config_file, disable_env=True)
    assert profile.platform_name == "Android"
    assert profile.automation_name == "UiAutomator2"
    assert profile.device_name == "emulator-5554"
    assert profile.app is None
    assert profile.appium_options == {}


def test_load_profile_from_data_custom():
    """Test loading a specific profile from raw TOML data."""
    profile = OptionsProfile.load(
        "custom", config_source=TOML_CONFIG_BASE, disable_env=True
    )
    assert profile.platform_name == "iOS"
    assert profile.platform_version == "17.2"
    assert profile.app == "/apps/custom.ipa"
    assert profile.appium_options == {
        "newCommandTimeout": 120,
        "custom:record": True,
    }
    assert profile.global_options == {"vendor:flag": "on"}


def test_load_profile_from_bytes():
    profile = OptionsProfile.load(
        config_source=TOML_CONFIG_BASE.encode("utf-8"), disable_env=True
    )
    assert profile.platform_name == "Android"


def test_load_profile_env_overrides(base_config_file: Path):
    """Test that environment variables correctly override file settings."""
    env = {
        "APPIUM_PLATFORM_NAME": "env-platform",
        "APPIUM_DEVICE_NAME": "env-device",
        "APPIUM_APP": "env-app",
        "APPIUM_BROWSER_NAME": "",
    }
    profile = OptionsProfile.load(
        "custom", config_source=base_config_file, override_env_vars=env
    )
    assert profile.platform_name == "env-platform"
    assert profile.device_name == "env-device"
    assert profile.app == "env-app"
    assert profile.automation_name == "XCUITest"
    assert profile.browser_name is None


def test_load_profile_disable_env(base_config_file: Path):
    """Test that `disable_env` prevents environment variable overrides."""
    env = {"APPIUM_PLATFORM_NAME": "env-platform"}
    profile = OptionsProfile.load(
        config_source=base_config_file, override_env_vars=env, disable_env=True
    )
    assert profile.platform_name == "Android"


def test_load_profile_from_env_file_and_profile(base_config_file: Path):
    env = {
        "APPIUM_CONFIG_FILE": str(base_config_file),
        "APPIUM_CONFIG_PROFILE": "custom",
    }
    profile = OptionsProfile.load(override_env_vars=env)
    assert profile.platform_name == "iOS"


def test_load_profile_disable_file(base_config_file: Path):
    """Test that `disable_file` loads configuration only from environment."""
    env = {
        "APPIUM_CONFIG_FILE": str(base_config_file),
        "APPIUM_PLATFORM_NAME": "env-platform",
    }
    profile = OptionsProfile.load(override_env_vars=env, disable_file=True)
    assert profile.platform_name == "env-platform"
    assert profile.automation_name is None


def test_load_profile_no_config_default_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("HOME", str(tmp_path))
    profile = OptionsProfile.load(override_env_vars={})
    assert profile == OptionsProfile()


def test_load_profile_default_home_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    config_dir = tmp_path / ".config" / "appiumoptions"
    config_dir.mkdir(parents=True)
    (config_dir / "options.toml").write_text(TOML_CONFIG_BASE)
    monkeypatch.setenv("HOME", str(tmp_path))
    profile = OptionsProfile.load(override_env_vars={})
    assert profile.device_name == "emulator-5554"


def test_load_profile_not_found(base_config_file: Path):
    with pytest.raises(ConfigError, match="Profile nonexistent not found"):
        OptionsProfile.load(
            "nonexistent", config_source=base_config_file, disable_env=True
        )


def test_load_profile_strict_fail():
    # Non-strict ignores the unrecognized key
    profile = OptionsProfile.load(
        config_source=TOML_CONFIG_STRICT_FAIL, disable_env=True
    )
    assert profile.platform_name == "Android"
    with pytest.raises(ConfigError, match="unrecognized"):
        OptionsProfile.load(
            config_source=TOML_CONFIG_STRICT_FAIL,
            config_file_strict=True,
            disable_env=True,
        )


def test_load_profile_malformed():
    with pytest.raises(ConfigError, match="Invalid TOML") as err:
        OptionsProfile.load(config_source=TOML_CONFIG_MALFORMED, disable_env=True)
    assert err.value.cause is not None


def test_load_profile_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="Unable to read"):
        OptionsProfile.load(
            config_source=tmp_path / "missing.toml", disable_env=True
        )


def test_load_profile_bad_source_type():
    with pytest.raises(TypeError, match="but got int"):
        OptionsProfile.load(
            config_source=123, disable_env=True  # type: ignore[arg-type]
        )


def test_profile_to_appium_options(registry: ComplianceRegistry):
    profile = OptionsProfile.load(
        "custom", config_source=TOML_CONFIG_BASE, disable_env=True
    )
    options = profile.to_appium_options(registry)
    assert options.registry is registry
    assert options.to_dict() == {"newCommandTimeout": 120, "custom:record": True}
    assert options.to_capabilities().to_dict() == {
        "platformName": "iOS",
        "appium:automationName": "XCUITest",
        "appium:platformVersion": "17.2",
        "appium:app": "/apps/custom.ipa",
        "vendor:flag": "on",
        "newCommandTimeout": 120,
        "custom:record": True,
    }
    assert registry.is_known("newCommandTimeout")


def test_profile_to_appium_options_reserved_name():
    profile = OptionsProfile(appium_options={"deviceName": "reserved"})
    with pytest.raises(InvalidArgumentError):
        profile.to_appium_options()


def test_profile_dict_round_trip():
    profile = OptionsProfile.load(
        "custom", config_source=TOML_CONFIG_BASE, disable_env=True
    )
    assert OptionsProfile.from_dict(profile.to_dict()) == profile
    assert OptionsProfile().to_dict() == {}


def test_load_config(base_config_file: Path):
    config = OptionsConfig.load(config_source=base_config_file)
    assert set(config.profiles) == {"default", "custom"}
    assert config.profiles["custom"].automation_name == "XCUITest"
    assert OptionsConfig.from_dict(config.to_dict()) == config


def test_load_config_from_env_file(base_config_file: Path):
    config = OptionsConfig.load(
        override_env_vars={"APPIUM_CONFIG_FILE": str(base_config_file)}
    )
    assert config.profiles["default"].platform_name == "Android"


def test_load_config_strict_fail():
    with pytest.raises(ConfigError):
        OptionsConfig.load(
            config_source=TOML_CONFIG_STRICT_FAIL, config_file_strict=True
        )


@pytest.mark.parametrize(
    "body,message",
    [
        ('appium_options = "oops"', "key appium_options must be a table"),
        ("global_options = [1, 2]", "key global_options must be a table"),
        ("platform_name = 5", "key platform_name must be a string"),
        ("app = true", "key app must be a string"),
    ],
)
@pytest.mark.parametrize("strict", [False, True])
def test_load_profile_wrong_value_types(body: str, message: str, strict: bool):
    with pytest.raises(ConfigError, match=message):
        OptionsProfile.load(
            config_source=f"[profile.default]\n{body}\n",
            config_file_strict=strict,
            disable_env=True,
        )


def test_load_config_wrong_value_type():
    with pytest.raises(ConfigError, match="Profile custom key device_name"):
        OptionsConfig.load(config_source="[profile.custom]\ndevice_name = 1\n")


def test_load_logs_data_source_without_contents(caplog: pytest.LogCaptureFixture):
    config = '[profile.default]\napp = "/secret/path/app.apk"\n'
    with caplog.at_level(logging.DEBUG, logger="appiumoptions.envconfig"):
        OptionsProfile.load(config_source=config, disable_env=True)
    assert "<data>" in caplog.text
    assert "/secret/path" not in caplog.text


def test_load_logs_file_path(base_config_file: Path, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.DEBUG, logger="appiumoptions.envconfig"):
        OptionsProfile.load(config_source=base_config_file, disable_env=True)
    assert str(base_config_file) in caplog.text
