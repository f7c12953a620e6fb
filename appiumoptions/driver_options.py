"""Base driver options shared by all driver option types."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from appiumoptions.capabilities import (
    Capabilities,
    ComplianceRegistry,
    DesiredCapabilities,
)
from appiumoptions.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

_EnumType = TypeVar("_EnumType", bound=Enum)


class PageLoadStrategy(Enum):
    """When navigation is considered complete.

    See the ``pageLoadStrategy`` capability of the W3C WebDriver
    specification.
    """

    NORMAL = "normal"
    EAGER = "eager"
    NONE = "none"


class UnhandledPromptBehavior(Enum):
    """What the driver does with a user prompt it did not expect."""

    DISMISS = "dismiss"
    ACCEPT = "accept"
    DISMISS_AND_NOTIFY = "dismiss and notify"
    ACCEPT_AND_NOTIFY = "accept and notify"
    IGNORE = "ignore"


def _to_enum(
    enum_type: Type[_EnumType],
    value: Union[_EnumType, str, None],
    argument: str,
) -> Optional[_EnumType]:
    if value is None or isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as err:
        allowed = ", ".join(repr(e.value) for e in enum_type)
        raise InvalidArgumentError(
            f"{argument} must be one of {allowed}, got {value!r}",
            argument=argument,
        ) from err


class DriverOptions(ABC):
    """Options common to every remote driver session.

    Typed options are exposed as properties. Capabilities that have no typed
    option can be added with :py:meth:`add_additional_option`. Names of typed
    options are reserved and rejected by :py:meth:`validate_capability_name`.
    """

    def __init__(self, *, registry: Optional[ComplianceRegistry] = None) -> None:
        """Create empty driver options.

        Args:
            registry: Registry deciding which capability names are
                specification compliant. Defaults to the process-wide
                :py:attr:`ComplianceRegistry.default`.
        """
        self._registry = registry or ComplianceRegistry.default
        self._additional_options: Dict[str, Any] = {}
        self._known_capability_names: Dict[str, str] = {}
        self.browser_name: Optional[str] = None
        self.browser_version: Optional[str] = None
        self.platform_name: Optional[str] = None
        self.accept_insecure_certificates: Optional[bool] = None
        self._page_load_strategy: Optional[PageLoadStrategy] = None
        self._unhandled_prompt_behavior: Optional[UnhandledPromptBehavior] = None
        self.proxy: Optional[Mapping[str, Any]] = None

        self.add_known_capability_name("browserName", "browser_name")
        self.add_known_capability_name("browserVersion", "browser_version")
        self.add_known_capability_name("platformName", "platform_name")
        self.add_known_capability_name(
            "acceptInsecureCerts", "accept_insecure_certificates"
        )
        self.add_known_capability_name("pageLoadStrategy", "page_load_strategy")
        self.add_known_capability_name(
            "unhandledPromptBehavior", "unhandled_prompt_behavior"
        )
        self.add_known_capability_name("proxy", "proxy")

    @property
    def registry(self) -> ComplianceRegistry:
        """Compliance registry used by these options."""
        return self._registry

    @property
    def page_load_strategy(self) -> Optional[PageLoadStrategy]:
        """Page load strategy, or ``None`` to use the driver default."""
        return self._page_load_strategy

    @page_load_strategy.setter
    def page_load_strategy(self, value: Union[PageLoadStrategy, str, None]) -> None:
        self._page_load_strategy = _to_enum(
            PageLoadStrategy, value, "page_load_strategy"
        )

    @property
    def unhandled_prompt_behavior(self) -> Optional[UnhandledPromptBehavior]:
        """Unhandled prompt behavior, or ``None`` to use the driver default."""
        return self._unhandled_prompt_behavior

    @unhandled_prompt_behavior.setter
    def unhandled_prompt_behavior(
        self, value: Union[UnhandledPromptBehavior, str, None]
    ) -> None:
        self._unhandled_prompt_behavior = _to_enum(
            UnhandledPromptBehavior, value, "unhandled_prompt_behavior"
        )

    def add_known_capability_name(
        self, capability_name: str, typed_option: str
    ) -> None:
        """Reserve a capability name for a typed option.

        Args:
            capability_name: Capability name as sent to the driver.
            typed_option: Name of the property callers should use instead.
        """
        self._known_capability_names[capability_name] = typed_option

    def remove_known_capability_name(self, capability_name: str) -> None:
        """Release a reserved capability name. No-op if it is not reserved."""
        self._known_capability_names.pop(capability_name, None)

    def validate_capability_name(self, capability_name: Optional[str]) -> None:
        """Check that a name may be used for an additional option.

        Raises:
            InvalidArgumentError: The name is ``None``, empty, or reserved by a
                typed option.
        """
        if not capability_name:
            raise InvalidArgumentError(
                "Capability name may not be None or empty",
                argument="capability_name",
            )
        typed_option = self._known_capability_names.get(capability_name)
        if typed_option is not None:
            raise InvalidArgumentError(
                f"There is already an option for the {capability_name} capability. "
                f"Please use the {typed_option} property instead.",
                argument="capability_name",
            )

    def add_additional_option(self, option_name: str, option_value: Any) -> None:
        """Add a global capability that has no typed option.

        The capability is emitted at the top level of generated capabilities.
        Adding a name a second time replaces the previous value.

        Raises:
            InvalidArgumentError: The name is invalid, see
                :py:meth:`validate_capability_name`.
        """
        self.validate_capability_name(option_name)
        self._additional_options[option_name] = option_value

    def _typed_capabilities(self) -> Dict[str, Any]:
        caps: Dict[str, Any] = {}
        if self.browser_name is not None:
            caps["browserName"] = self.browser_name
        if self.browser_version is not None:
            caps["browserVersion"] = self.browser_version
        if self.platform_name is not None:
            caps["platformName"] = self.platform_name
        if self.accept_insecure_certificates is not None:
            caps["acceptInsecureCerts"] = self.accept_insecure_certificates
        if self._page_load_strategy is not None:
            caps["pageLoadStrategy"] = self._page_load_strategy.value
        if self._unhandled_prompt_behavior is not None:
            caps["unhandledPromptBehavior"] = self._unhandled_prompt_behavior.value
        if self.proxy is not None:
            caps["proxy"] = dict(self.proxy)
        return caps

    def generate_capabilities(self, spec_compliant: bool) -> Capabilities:
        """Build a new capabilities object from these options.

        Args:
            spec_compliant: If true, additional options whose names are not
                compliant according to :py:attr:`registry` are dropped and a
                read-only :py:class:`Capabilities` is returned. Otherwise every
                option is kept and a :py:class:`DesiredCapabilities` is
                returned.
        """
        caps = self._typed_capabilities()
        for name, value in self._additional_options.items():
            if spec_compliant and not self._registry.is_compliant(name):
                logger.debug("Dropping non spec compliant capability %s", name)
                continue
            caps[name] = value
        if spec_compliant:
            return Capabilities(caps)
        return DesiredCapabilities(caps)

    @abstractmethod
    def to_capabilities(self) -> Capabilities:
        """Capabilities to send when creating a session."""
        raise NotImplementedError
