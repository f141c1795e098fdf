import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

logger = logging.getLogger(__name__)


class FormValidationError(ValueError):
    """Error de validación de formulario con mensaje listo para el usuario."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoChangesError(Exception):
    """El diff contra el estado previo quedó vacío: no se debe escribir nada."""

    def __init__(self, message: str = "No hay cambios para guardar"):
        super().__init__(message)
        self.message = message


class EntityNotFoundError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BaserowConfigError(RuntimeError):
    pass


class BaserowRequestError(Exception):
    """Respuesta no exitosa (o fallo de red) al hablar con Baserow."""

    def __init__(self, status: int | None, body: str):
        super().__init__(f"Baserow error {status}: {body}")
        self.status = status
        self.body = body


def _normalize_errors(errs):
    norm = []
    for e in errs:
        e = dict(e)
        val = e.get("input")
        if isinstance(val, (bytes, bytearray)):
            e["input"] = val.decode("utf-8", errors="ignore")
        norm.append(e)
    return norm


def install_error_handlers(app: FastAPI):
    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "validation_error", "detail": _normalize_errors(exc.errors())},
        )

    @app.exception_handler(FormValidationError)
    async def form_validation_handler(request: Request, exc: FormValidationError):
        return JSONResponse(status_code=400, content={"error": "form_error", "detail": exc.message})

    @app.exception_handler(NoChangesError)
    async def no_changes_handler(request: Request, exc: NoChangesError):
        return JSONResponse(status_code=200, content={"detail": exc.message, "changed": False})

    @app.exception_handler(EntityNotFoundError)
    async def not_found_handler(request: Request, exc: EntityNotFoundError):
        return JSONResponse(status_code=404, content={"error": "not_found", "detail": exc.message})

    @app.exception_handler(BaserowConfigError)
    async def config_handler(request: Request, exc: BaserowConfigError):
        logger.error("Configuración de Baserow incompleta: %s", exc)
        return JSONResponse(status_code=500, content={"error": "config_error", "detail": str(exc)})

    @app.exception_handler(BaserowRequestError)
    async def baserow_handler(request: Request, exc: BaserowRequestError):
        status_code = exc.status if exc.status and 400 <= exc.status < 600 else 502
        return JSONResponse(
            status_code=status_code,
            content={"error": "upstream_error", "detail": exc.body},
        )
