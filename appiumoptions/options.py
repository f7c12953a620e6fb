"""Options for Appium driver sessions.

:py:class:`AppiumOptions` collects typed Appium options and arbitrary
additional Appium options, and merges them into the capabilities generated by
:py:class:`appiumoptions.driver_options.DriverOptions`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from appiumoptions.capabilities import (
    Capabilities,
    CapabilitiesMapSource,
    ComplianceRegistry,
)
from appiumoptions.driver_options import DriverOptions

logger = logging.getLogger(__name__)

APPIUM_PREFIX = "appium:"
"""Vendor prefix of Appium extension capabilities."""

_TYPED_APPIUM_OPTIONS = {
    "automationName": "automation_name",
    "deviceName": "device_name",
    "app": "app",
    "platformVersion": "platform_version",
}


class AppiumOptions(DriverOptions):
    """Appium driver options.

    Appium specific capabilities that have no typed option are added with
    :py:meth:`add_additional_appium_option`. They are merged into the result of
    :py:meth:`to_capabilities` and take precedence over any capability of the
    same name generated by the base options.
    """

    def __init__(self, *, registry: Optional[ComplianceRegistry] = None) -> None:
        """Create empty Appium options.

        Args:
            registry: Registry that Appium option names are registered with on
                :py:meth:`to_capabilities`. Defaults to the process-wide
                :py:attr:`ComplianceRegistry.default`, in which case
                registrations outlive this object.
        """
        super().__init__(registry=registry)
        self._appium_options: Dict[str, Any] = {}
        self.automation_name: Optional[str] = None
        self.device_name: Optional[str] = None
        self.app: Optional[str] = None
        self.platform_version: Optional[str] = None
        for name, typed_option in _TYPED_APPIUM_OPTIONS.items():
            self.add_known_capability_name(name, typed_option)
            self.add_known_capability_name(APPIUM_PREFIX + name, typed_option)

    def add_additional_appium_option(
        self, option_name: str, option_value: Any
    ) -> None:
        """Add an Appium specific capability that has no typed option.

        Adding a name a second time replaces the previous value.

        Raises:
            InvalidArgumentError: The name is ``None``, empty, or reserved by a
                typed option.
        """
        self.validate_capability_name(option_name)
        self._appium_options[option_name] = option_value

    def add_additional_capability(
        self, capability_name: str, capability_value: Any, is_global: bool = False
    ) -> None:
        """Add a capability that has no typed option.

        .. deprecated::
            Use :py:meth:`add_additional_appium_option`, or
            :py:meth:`add_additional_option` for global capabilities.

        Args:
            capability_name: Name of the capability.
            capability_value: Value of the capability.
            is_global: If true, the capability is added as a global option with
                :py:meth:`add_additional_option`. Otherwise it is added as an
                Appium option with :py:meth:`add_additional_appium_option`.

        Raises:
            InvalidArgumentError: The name is ``None``, empty, or reserved by a
                typed option.
        """
        if is_global:
            self.add_additional_option(capability_name, capability_value)
        else:
            self.add_additional_appium_option(capability_name, capability_value)

    def _typed_capabilities(self) -> Dict[str, Any]:
        caps = super()._typed_capabilities()
        for name, typed_option in _TYPED_APPIUM_OPTIONS.items():
            value = getattr(self, typed_option)
            if value is not None:
                caps[APPIUM_PREFIX + name] = value
        return caps

    def to_capabilities(self) -> Capabilities:
        """Capabilities to send when creating an Appium session.

        Every Appium option name without a ``:`` is first registered with
        :py:attr:`registry` so it is treated as spec compliant. With the
        default registry this affects every capabilities object generated
        later in the process, not only this one.

        A new object is returned on each call; these options are not changed.
        """
        self._registry.register(
            name for name in self._appium_options if ":" not in name
        )

        options = self.generate_capabilities(False)

        caps = None
        if isinstance(options, CapabilitiesMapSource):
            caps = options.get_mutable_capabilities_map()
        if caps is None:
            logger.debug(
                "Generated %s exposes no capabilities map, "
                "not merging Appium options",
                type(options).__name__,
            )
            return options

        for name, value in self._appium_options.items():
            caps[name] = value
        return options

    def to_dict(self) -> Dict[str, Any]:
        """Appium options added so far.

        This is the dictionary held by these options, not a copy. Changes to it
        change these options.
        """
        return self._appium_options
