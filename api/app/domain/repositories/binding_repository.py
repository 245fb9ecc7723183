"""
Interfaz del repositorio de bindings.
Define el contrato que debe cumplir cualquier implementación.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from app.domain.entities.binding import Binding
from app.shared.constants.domain_constants import DomainType


class IBindingRepository(ABC):
    """
    Interfaz del repositorio de bindings.
    Define las operaciones de persistencia para bases de Notion conectadas.
    """

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[Binding]:
        """
        Obtiene todos los bindings de un usuario.

        Args:
            user_id: ID del usuario

        Returns:
            List[Binding]: Bindings del usuario
        """
        pass

    @abstractmethod
    async def get_by_id(self, binding_id: int) -> Optional[Binding]:
        """Obtiene un binding por su ID."""
        pass

    @abstractmethod
    async def find(
        self,
        user_id: str,
        domain_type: DomainType,
        period: str = ""
    ) -> Optional[Binding]:
        """
        Busca el binding de un usuario para un dominio (y periodo).

        Returns:
            Optional[Binding]: Binding encontrado o None
        """
        pass

    @abstractmethod
    async def find_by_database_id(self, notion_database_id: str) -> List[Binding]:
        """
        Busca todos los bindings (de cualquier usuario y dominio) que
        referencian una base de Notion.
        """
        pass

    @abstractmethod
    async def list_by_sync_mode(self, sync_mode: str) -> List[Binding]:
        """Obtiene los bindings con un modo de sincronización dado."""
        pass

    @abstractmethod
    async def upsert(self, binding: Binding) -> Binding:
        """
        Crea o actualiza un binding por su clave compuesta
        (usuario, base, dominio, periodo).
        """
        pass

    @abstractmethod
    async def update_schema(self, binding_id: int, schema_properties: dict, database_name: Optional[str]) -> None:
        """Reemplaza el esquema cacheado de un binding."""
        pass

    @abstractmethod
    async def touch_last_sync(self, binding_id: int, when: datetime) -> None:
        """Actualiza la marca del último sync."""
        pass

    @abstractmethod
    async def delete(self, binding_id: int) -> bool:
        """
        Elimina un binding.

        Returns:
            bool: True si se eliminó, False si no existía
        """
        pass
