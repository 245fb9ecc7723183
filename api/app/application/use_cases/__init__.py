"""
Casos de uso de la aplicación.
"""
from .sync_use_cases import SyncUseCases
from .binding_use_cases import BindingUseCases

__all__ = ["SyncUseCases", "BindingUseCases"]
