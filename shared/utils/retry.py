"""Utilidades para retry con backoff exponencial"""
import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,)
) -> T:
    """
    Ejecutar una corrutina con retry y backoff exponencial

    Args:
        func: Función sin argumentos que devuelve la corrutina a ejecutar
        max_retries: Número máximo de reintentos (además del primer intento)
        initial_delay: Delay inicial en segundos
        max_delay: Delay máximo en segundos
        exponential_base: Base para cálculo exponencial
        exceptions: Excepciones que disparan un reintento; el resto se propaga

    Returns:
        Resultado de la función
    """
    delay = initial_delay

    for attempt in range(max_retries + 1):
        try:
            return await func()
        except exceptions as e:
            if attempt == max_retries:
                raise
            logger.warning(
                f"Intento {attempt + 1}/{max_retries + 1} falló: {type(e).__name__}: {e}. "
                f"Reintentando en {delay:.1f}s"
            )
            await asyncio.sleep(delay)
            delay = min(delay * exponential_base, max_delay)

    raise RuntimeError("Max retries exceeded")
