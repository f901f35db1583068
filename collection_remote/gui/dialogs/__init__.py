"""Dialogs package for the Collection Remote window."""

from .delete_dialog import DeleteDialog
from .settings_dialog import SettingsDialog

__all__ = [
    'DeleteDialog',
    'SettingsDialog',
]
