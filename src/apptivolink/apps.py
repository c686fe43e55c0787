"""App identity resolution.

Maps an app name, alias, numeric id, or compound ``"<name>-<id>"`` string to
the fixed request parameters each platform app needs (URL segment, request
envelope key, id parameter name, numeric app id).

Compound strings address extension apps: ``"cases-993829"`` is a Cases
extension that uses the Cases endpoints but its own numeric app id.
``"customapp-<id>"`` addresses a tenant-defined custom app, whose numeric id
comes entirely from the suffix.

Usage:
    result = resolve_app("Cases")
    if result:
        descriptor = result.payload
"""

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from apptivolink.labels import normalize_label
from apptivolink.result import ErrorKind, ResolutionResult

CUSTOM_APP_ALIAS = "customapp"


class AppDescriptor(BaseModel):
    """Immutable request parameters for one app."""

    singular_name: str
    url_segment: str
    data_envelope_key: str
    id_param_name: str
    numeric_app_id: int
    alias_name: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def is_custom_app(self) -> bool:
        """True for tenant-defined custom apps (``customapp-<id>``)."""
        return self.url_segment == CUSTOM_APP_ALIAS

    def with_app_id(self, numeric_app_id: int, alias_name: str) -> "AppDescriptor":
        """Copy of this descriptor with an overridden numeric id."""
        return self.model_copy(
            update={"numeric_app_id": numeric_app_id, "alias_name": alias_name}
        )


class AppRegistry:
    """Registry of known app templates.

    Templates are registered under every name that should select them
    (singular, plural, numeric id string). Lookup is case-insensitive.
    Built-in apps are registered on import.
    """

    _templates: Dict[str, AppDescriptor] = {}

    @classmethod
    def register(cls, descriptor: AppDescriptor, *names: str) -> None:
        """Register a template under one or more names.

        Args:
            descriptor: Template descriptor (its numeric id is the default id)
            *names: Names/aliases that select this template
        """
        for name in names:
            cls._templates[normalize_label(name)] = descriptor
        resolve_app.cache_clear()

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove a single name (mainly for testing)."""
        cls._templates.pop(normalize_label(name), None)
        resolve_app.cache_clear()

    @classmethod
    def get(cls, name: str) -> Optional[AppDescriptor]:
        """Look up a template by name, or None."""
        return cls._templates.get(normalize_label(name))

    @classmethod
    def list_names(cls) -> List[str]:
        """All registered names."""
        return sorted(cls._templates.keys())


def _builtin(
    singular: str,
    plural: str,
    app_id: int,
    url_segment: Optional[str] = None,
    data_envelope_key: Optional[str] = None,
    id_param_name: Optional[str] = None,
) -> None:
    descriptor = AppDescriptor(
        singular_name=singular,
        url_segment=url_segment or plural,
        data_envelope_key=data_envelope_key or f"{singular}Data",
        id_param_name=id_param_name or f"{singular}Id",
        numeric_app_id=app_id,
    )
    AppRegistry.register(descriptor, singular, plural, str(app_id))


def _register_builtin_apps() -> None:
    _builtin("case", "cases", 59)
    _builtin("contact", "contacts", 2)
    _builtin("customer", "customers", 3)
    _builtin("employee", "employees", 8)
    _builtin("estimate", "estimates", 155)
    _builtin("invoice", "invoices", 33, url_segment="invoice")
    _builtin("item", "items", 13)
    _builtin("lead", "leads", 4)
    _builtin("opportunity", "opportunities", 11)
    _builtin("order", "orders", 12)
    _builtin("project", "projects", 88, data_envelope_key="projectInformation")
    _builtin("property", "properties", 160)
    _builtin("supplier", "suppliers", 37)
    _builtin("target", "targets", 19, data_envelope_key="targetIdx", id_param_name="id")


# Fixed parameters shared by every custom app; the id always comes from the suffix.
_CUSTOM_APP_TEMPLATE = AppDescriptor(
    singular_name=CUSTOM_APP_ALIAS,
    url_segment=CUSTOM_APP_ALIAS,
    data_envelope_key="customAppData",
    id_param_name="customAppId",
    numeric_app_id=0,
)


def _unknown(text: str) -> ResolutionResult[AppDescriptor]:
    return ResolutionResult.fail(ErrorKind.UNKNOWN_APP, f"Invalid app name or id ({text!r})")


@lru_cache(maxsize=256)
def resolve_app(app_name_or_id: str) -> ResolutionResult[AppDescriptor]:
    """Resolve an app name, numeric id, or compound string to a descriptor.

    Args:
        app_name_or_id: e.g. ``"Cases"``, ``"59"``, ``"cases-993829"``,
            ``"customapp-445566"``

    Returns:
        ResolutionResult with the AppDescriptor, or an ``unknown_app`` failure
    """
    if not isinstance(app_name_or_id, str) or not app_name_or_id.strip():
        return _unknown(str(app_name_or_id))

    text = app_name_or_id.strip()
    base, sep, suffix = text.partition("-")

    if not sep:
        if normalize_label(text) == CUSTOM_APP_ALIAS:
            # Custom apps cannot be addressed without their numeric id
            return _unknown(text)
        template = AppRegistry.get(text)
        if template is None:
            return _unknown(text)
        return ResolutionResult.ok(template)

    try:
        override_id = int(suffix.strip())
    except ValueError:
        return _unknown(text)
    if override_id <= 0:
        return _unknown(text)

    if normalize_label(base) == CUSTOM_APP_ALIAS:
        template = _CUSTOM_APP_TEMPLATE
    else:
        template = AppRegistry.get(base)
        if template is None:
            return _unknown(text)

    return ResolutionResult.ok(template.with_app_id(override_id, base.strip()))


_register_builtin_apps()
