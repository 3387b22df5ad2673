class KpiEngineError(Exception):
    """Base class for failures that abort a KPI run."""


class StorageUnavailable(KpiEngineError):
    """The inventory store could not be reached."""


class SchemaMismatch(KpiEngineError):
    """A derived-field batch does not fit the persisted columns or keys."""
