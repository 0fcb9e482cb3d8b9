"""Repository layer for module configuration database access."""
from caretaker.repositories.modules_repo import ModulesRepository
from caretaker.repositories.module_settings_repo import ModuleSettingsRepository
from caretaker.repositories.exclusions_repo import ExclusionsRepository
from caretaker.repositories.actions_repo import ActionsRepository

__all__ = [
    "ModulesRepository",
    "ModuleSettingsRepository",
    "ExclusionsRepository",
    "ActionsRepository",
]
