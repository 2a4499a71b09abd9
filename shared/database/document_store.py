"""Almacén de documentos JSON (un arreglo de registros por archivo)"""
import asyncio
import json
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List

from shared.utils.errors import DocumentIOError

logger = logging.getLogger(__name__)


class JSONDocumentStore:
    """
    Documentos con nombre guardados como `<base_dir>/<name>.json`.

    Cada escritura reemplaza el documento completo. Los ciclos
    leer-modificar-escribir deben pasar por `transaction()`, que toma un lock
    por documento; dos procesos distintos escribiendo el mismo archivo siguen
    pudiendo pisarse.
    """

    def __init__(self, base_dir):
        self.base_dir = Path(base_dir)
        self._locks: Dict[str, asyncio.Lock] = {}

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise ValueError(f"Nombre de documento inválido: {name!r}")
        return self.base_dir / f"{name}.json"

    def _lock(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    def _read_sync(self, name: str) -> List[dict]:
        path = self.path_for(name)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            # Un documento ilegible se trata como vacío: la próxima escritura lo reemplaza
            logger.warning(f"No se pudo leer el documento '{name}' ({path}): {e}. Se usa documento vacío")
            return []

        if not isinstance(data, list):
            logger.warning(f"El documento '{name}' no es un arreglo JSON. Se usa documento vacío")
            return []
        return data

    def _write_sync(self, name: str, records: List[dict]) -> None:
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(records, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise DocumentIOError(
                f"No se pudo guardar el documento '{name}'",
                details={"document": name, "reason": str(e)},
            ) from e

    async def read(self, name: str) -> List[dict]:
        """Leer un documento; vacío si no existe o no se puede interpretar"""
        return await asyncio.to_thread(self._read_sync, name)

    async def write(self, name: str, records: List[dict]) -> None:
        """Reemplazar el documento completo"""
        async with self._lock(name):
            await asyncio.to_thread(self._write_sync, name, list(records))

    @asynccontextmanager
    async def transaction(self, name: str) -> AsyncIterator[List[dict]]:
        """
        Ciclo leer-modificar-escribir con el lock del documento tomado.

        Los cambios sobre la lista entregada se guardan al salir del bloque;
        si el bloque lanza una excepción no se escribe nada.
        """
        async with self._lock(name):
            records = await asyncio.to_thread(self._read_sync, name)
            yield records
            await asyncio.to_thread(self._write_sync, name, records)
