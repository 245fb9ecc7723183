"""
Excepciones de integraciones externas.
"""
from typing import Optional

from app.shared.exceptions.base import AppException


class NotionApiException(AppException):
    """
    Error al hablar con el API de Notion.

    ``notion_status`` y ``notion_code`` conservan la respuesta original;
    el ``status_code`` HTTP propio es 502 salvo que el recurso no exista.
    """

    def __init__(
        self,
        message: str,
        notion_status: Optional[int] = None,
        notion_code: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=404 if notion_code == "object_not_found" else 502,
            error_code="NOTION_API_ERROR",
            details={"notion_status": notion_status, "notion_code": notion_code}
        )
        self.notion_status = notion_status
        self.notion_code = notion_code


class NotionPaginationException(NotionApiException):
    """La paginación por cursor no avanza o supera el máximo de páginas."""

    def __init__(self, message: str):
        super().__init__(message=message, notion_code="pagination_guard")
