"""Domain models for the seat roster tool.

Record, configuration and result types shared by the CSV engine, the import
driver and the persistence layer.
"""

from .config_models import AppConfig, DatabaseConfig, TableNames
from .error_record import ErrorRecord
from .import_summary import BatchStatsAccumulator, ImportMode, ImportSummary
from .roster_record import LobRoles, Modifier, RosterRecord

__all__ = [
    # Configuration models
    "AppConfig",
    "DatabaseConfig",
    "TableNames",
    # Records
    "LobRoles",
    "Modifier",
    "RosterRecord",
    # Processing models
    "BatchStatsAccumulator",
    "ErrorRecord",
    "ImportMode",
    "ImportSummary",
]
