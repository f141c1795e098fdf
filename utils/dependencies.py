from config.settings import settings
from services.baserow_client import BaserowClient


def get_baserow_client():
    """
    Un cliente (y una Session de requests) por request; se cierra al terminar.
    Si falta URL o token se levanta BaserowConfigError -> 500.
    """
    client = BaserowClient(settings.baserow_config())
    try:
        yield client
    finally:
        client.close()
