"""
Integración con el API REST de Notion.

Solo lectura: bases (esquema + query paginada) y páginas individuales.
El mapeo de propiedades a columnas vive en la capa de aplicación.
"""
