"""Capabilities objects and the W3C compliant capability name registry."""

from __future__ import annotations

import logging
import threading
from typing import (
    Any,
    ClassVar,
    Dict,
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
)

from typing_extensions import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

W3C_CAPABILITY_NAMES: Tuple[str, ...] = (
    "browserName",
    "browserVersion",
    "platformName",
    "acceptInsecureCerts",
    "pageLoadStrategy",
    "proxy",
    "setWindowRect",
    "timeouts",
    "strictFileInteractability",
    "unhandledPromptBehavior",
    "webSocketUrl",
)
"""Capability names defined by the W3C WebDriver specification."""


class ComplianceRegistry:
    """Set of capability names treated as specification compliant.

    Names that contain a ``:`` are vendor-prefixed extension capabilities and
    are always compliant. Any other name must be registered here to survive
    spec-compliant capability generation.

    Registration is cumulative and cannot be undone. Options objects that are
    not given a registry share :py:attr:`default`, so a name registered by one
    of them is visible to every later capabilities generation in the process.
    Concurrent finalizers sharing a registry see each other's names; callers
    needing a deterministic set must synchronize externally or use their own
    registry.
    """

    default: ClassVar[ComplianceRegistry]
    """Process-wide registry used when no registry is given."""

    def __init__(self, names: Iterable[str] = W3C_CAPABILITY_NAMES) -> None:
        """Create a registry seeded with the given names."""
        self._lock = threading.Lock()
        # Dict keys keep insertion order and give us de-duplication
        self._names: Dict[str, None] = dict.fromkeys(names)

    def register(self, names: Iterable[str]) -> None:
        """Add names to the set of known compliant names."""
        names = list(names)
        if not names:
            return
        with self._lock:
            added = [name for name in dict.fromkeys(names) if name not in self._names]
            self._names.update(dict.fromkeys(added))
        if added:
            logger.debug("Registered compliant capability names: %s", added)

    def is_known(self, name: str) -> bool:
        """Whether the exact name has been registered."""
        with self._lock:
            return name in self._names

    def is_compliant(self, name: str) -> bool:
        """Whether a capability of this name survives spec-compliant
        generation.
        """
        return ":" in name or self.is_known(name)

    @property
    def known_names(self) -> Tuple[str, ...]:
        """Snapshot of registered names in registration order."""
        with self._lock:
            return tuple(self._names)


ComplianceRegistry.default = ComplianceRegistry()


@runtime_checkable
class CapabilitiesMapSource(Protocol):
    """Object that exposes its underlying capabilities mapping for
    modification.
    """

    def get_mutable_capabilities_map(self) -> Optional[MutableMapping[str, Any]]:
        """Mapping backing this object, or ``None`` if there is none.

        Changes made to the returned mapping are visible through the object.
        """
        ...


class Capabilities(Mapping[str, Any]):
    """Read-only set of capabilities to send when creating a driver session.

    The capabilities behave like a mapping from capability name to value.
    """

    def __init__(self, capabilities: Optional[Mapping[str, Any]] = None) -> None:
        """Create capabilities from an optional initial mapping.

        The mapping is copied.
        """
        self._capabilities: Dict[str, Any] = dict(capabilities or {})

    def __getitem__(self, key: str) -> Any:
        return self._capabilities[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._capabilities!r})"

    def has_capability(self, name: str) -> bool:
        """Whether a capability of the given name is present."""
        return name in self._capabilities

    def get_capability(self, name: str) -> Any:
        """Value of the capability or ``None`` if not present."""
        return self._capabilities.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """Shallow copy of the capabilities as a dictionary."""
        return dict(self._capabilities)

    def get_mutable_capabilities_map(self) -> Optional[MutableMapping[str, Any]]:
        """See :py:meth:`CapabilitiesMapSource.get_mutable_capabilities_map`."""
        return self._capabilities


class DesiredCapabilities(Capabilities):
    """Capabilities that may be changed after creation."""

    def set_capability(self, name: str, value: Any) -> None:
        """Set a capability, replacing any existing value."""
        self._capabilities[name] = value

    def remove_capability(self, name: str) -> None:
        """Remove a capability if present."""
        self._capabilities.pop(name, None)
