"""Session backups and rollback."""

from contentfix.backup.manager import BackupManager

__all__ = ["BackupManager"]
