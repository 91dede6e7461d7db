"""Exceptions raised while loading catalog, preset and configuration data.

Assembly itself never raises for content problems; those are recorded as
:class:`loadout.generation.models.SlotFailure` entries and logged.
"""


class LoadoutError(Exception):
    """Base class for loadout errors."""


class CatalogError(LoadoutError):
    """Catalog or preset data could not be loaded."""


class ConfigError(LoadoutError):
    """Generation configuration could not be loaded or is invalid."""
