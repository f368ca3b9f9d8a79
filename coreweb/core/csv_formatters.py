"""
Formatters CSV: serializa colecciones de registros a texto CSV y lee
cuerpos CSV como listas de registros.

Las columnas son los campos públicos del tipo de registro, en orden de
declaración. La lectura asigna los valores por posición y los convierte
con pydantic.
"""

import csv
import io
import logging
from typing import Any, Iterable, List, Optional

from fastapi import Request
from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from starlette.responses import Response

from coreweb.config import Settings, settings as default_settings
from coreweb.core.exceptions import UnsupportedMediaTypeException, ValidationException
from coreweb.core.fields import get_field_names, read_field
from coreweb.core.utils import enum_to_value, is_collection_type

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv"


class CsvFormatterOptions(BaseModel):
    """Opciones de los formatters CSV."""
    use_single_line_header: bool = Field(True, description="Escribe/omite una línea de cabecera")
    delimiter: str = Field(";", min_length=1, description="Delimitador de columnas")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CsvFormatterOptions":
        settings = settings or default_settings
        return cls(
            use_single_line_header=settings.csv_use_single_line_header,
            delimiter=settings.csv_delimiter,
        )


def _csv_fields(item_type: type) -> List[str]:
    return [name for name in get_field_names(item_type) if not name.startswith("_")]


def _format_value(value: Any) -> str:
    if value is None:
        return ""

    text = str(enum_to_value(value))
    return text.replace("\r", " ").replace("\n", " ")


def _trim_row(values: List[str]) -> List[str]:
    # Las columnas vacías al final de la fila no se escriben
    while values and values[-1] == "":
        values.pop()
    return values


class CsvOutputFormatter:
    """Escribe una colección de registros como texto CSV."""

    content_type = CSV_MEDIA_TYPE

    def __init__(self, options: CsvFormatterOptions):
        if options is None:
            raise ValueError("Las opciones del formatter son obligatorias")
        self.options = options

    def can_write_type(self, value_type: Any) -> bool:
        return is_collection_type(value_type)

    def write(self, items: Iterable[Any], item_type: Optional[type] = None) -> str:
        """
        Serializa los registros a CSV.

        Args:
            items: Registros a escribir
            item_type: Tipo de los registros (por defecto el del primer registro)

        Returns:
            Texto CSV, una línea por registro

        Raises:
            TypeError: Si no hay registros ni tipo para determinar las columnas
        """
        items = list(items)
        if item_type is None:
            if not items:
                raise TypeError("El tipo de los elementos es obligatorio para una colección vacía")
            item_type = type(items[0])

        fields = _csv_fields(item_type)

        buf = io.StringIO()
        writer = csv.writer(
            buf,
            delimiter=self.options.delimiter,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\n",
        )
        if self.options.use_single_line_header:
            writer.writerow(fields)

        for item in items:
            writer.writerow(_trim_row([_format_value(read_field(item, name)) for name in fields]))

        return buf.getvalue()


class CsvInputFormatter:
    """Lee texto CSV como una lista de registros del tipo indicado."""

    content_type = CSV_MEDIA_TYPE

    def __init__(self, options: CsvFormatterOptions):
        if options is None:
            raise ValueError("Las opciones del formatter son obligatorias")
        self.options = options

    def can_read_type(self, value_type: Any) -> bool:
        return is_collection_type(value_type)

    def read(self, text: str, item_type: type) -> List[Any]:
        """
        Convierte texto CSV en registros.

        Args:
            text: Contenido CSV
            item_type: Modelo pydantic, dataclass o TypedDict de cada fila

        Returns:
            Lista de registros

        Raises:
            ValidationException: Si una fila no se puede convertir al tipo
        """
        fields = _csv_fields(item_type)
        adapter = TypeAdapter(item_type)

        reader = csv.reader(io.StringIO(text), delimiter=self.options.delimiter)
        if self.options.use_single_line_header:
            next(reader, None)

        items = []
        for values in reader:
            line_number = reader.line_num
            if not any(value.strip() for value in values):
                continue

            if len(values) > len(fields):
                logger.info(f"Línea {line_number} del CSV con {len(values)} columnas, se esperaban {len(fields)}")
                raise ValidationException(
                    message=f"Línea {line_number} del CSV no válida",
                    details={"line": line_number, "error": f"Se esperaban como máximo {len(fields)} columnas"},
                )

            try:
                items.append(adapter.validate_python(dict(zip(fields, values))))
            except ValidationError as e:
                logger.info(f"Línea {line_number} del CSV no válida: {e}")
                raise ValidationException(
                    message=f"Línea {line_number} del CSV no válida",
                    details={"line": line_number, "error": str(e)},
                )

        return items


def csv_response(
    items: Iterable[Any],
    item_type: Optional[type] = None,
    options: Optional[CsvFormatterOptions] = None,
    status_code: int = 200,
) -> Response:
    """
    Crea una respuesta ``text/csv``.

    El cuerpo solo se escribe cuando el código de estado es 200.
    """
    options = options or CsvFormatterOptions.from_settings()
    content = ""
    if status_code == 200:
        content = CsvOutputFormatter(options).write(items, item_type)
    return Response(content=content, status_code=status_code, media_type=CSV_MEDIA_TYPE)


class CsvBody:
    """
    Dependencia que lee el cuerpo ``text/csv`` de la petición.

    Usage::

        @router.post("/items/import")
        async def import_items(items: list[Item] = Depends(CsvBody(Item))):
            ...
    """

    def __init__(self, item_type: type, options: Optional[CsvFormatterOptions] = None):
        self.item_type = item_type
        self.options = options

    async def __call__(self, request: Request) -> List[Any]:
        content_type = request.headers.get("content-type")
        media_type = (content_type or "").split(";")[0].strip().lower()
        if media_type != CSV_MEDIA_TYPE:
            raise UnsupportedMediaTypeException(content_type, CSV_MEDIA_TYPE)

        body = await request.body()
        formatter = CsvInputFormatter(self.options or CsvFormatterOptions.from_settings())
        return formatter.read(body.decode("utf-8-sig"), self.item_type)
