"""
Data Transfer Objects (DTOs) para la capa de aplicación.
"""
from .sync_dto import SyncResponseDTO, FinanceSyncResponseDTO
from .binding_dto import (
    ConnectDatabaseRequestDTO,
    ConnectDatabaseResponseDTO,
    BindingResponseDTO,
    BindingListResponseDTO,
    DisconnectResponseDTO,
)

__all__ = [
    "SyncResponseDTO",
    "FinanceSyncResponseDTO",
    "ConnectDatabaseRequestDTO",
    "ConnectDatabaseResponseDTO",
    "BindingResponseDTO",
    "BindingListResponseDTO",
    "DisconnectResponseDTO",
]
