"""Directorio de municipios indexado por nombre canónico.

English:
    Municipality directory keyed by canonical name. Loaded once per import
    from the store; optionally inserts unknown names (insert-or-get).
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from guardianes.core.models import Municipality
from guardianes.core.normalize import normalize_name
from guardianes.errors import UnresolvedMunicipality

logger = logging.getLogger(__name__)


class MunicipalityDirectory:
    """Resuelve nombres crudos a ids de municipio.

    Attributes:
        state (str): Entidad asignada a municipios creados.
        create_missing (bool): Inserta nombres desconocidos en lugar de omitirlos.
        created (int): Municipios insertados por este directorio.

    English:
        Resolves raw names to municipality ids. When ``create_missing`` is
        false an unknown name resolves to ``None`` and nothing is written.
    """

    def __init__(self, store, *, state: str = "Guerrero", create_missing: bool = False) -> None:
        self._store = store
        self.state = state
        self.create_missing = create_missing
        self.created = 0
        self._ids: Dict[str, int] = {}

    @classmethod
    def load(cls, store, **kwargs) -> "MunicipalityDirectory":
        directory = cls(store, **kwargs)
        directory.add_all(store.load_municipalities())
        logger.info("municipalities_loaded count=%s", len(directory))
        return directory

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._ids

    def add_all(self, municipalities: Iterable[Municipality]) -> None:
        for municipality in municipalities:
            canonical = normalize_name(municipality.canonical_name)
            if canonical in self._ids:
                logger.warning(
                    "municipality_duplicate canonical=%s kept_id=%s dropped_id=%s",
                    canonical,
                    self._ids[canonical],
                    municipality.id,
                )
                continue
            self._ids[canonical] = municipality.id

    def resolve(self, name: str) -> Optional[int]:
        """Id del municipio o ``None``; crea el municipio si está habilitado.

        English: Municipality id or ``None``; creates it when enabled.
        """
        canonical = normalize_name(name)
        if not canonical:
            return None
        municipality_id = self._ids.get(canonical)
        if municipality_id is not None or not self.create_missing:
            return municipality_id
        return self._create(canonical)

    def require(self, name: str) -> int:
        """Como ``resolve`` pero lanza ``UnresolvedMunicipality`` si no existe."""
        municipality_id = self.resolve(name)
        if municipality_id is None:
            raise UnresolvedMunicipality(name, normalize_name(name))
        return municipality_id

    def _create(self, canonical: str) -> int:
        municipality_id = self._store.insert_municipality(canonical, self.state)
        self._ids[canonical] = municipality_id
        self.created += 1
        logger.info("municipality_created canonical=%s id=%s", canonical, municipality_id)
        return municipality_id

    def seed_from_electorate(self) -> int:
        """Inserta los municipios presentes en ``electorado_seccional``.

        Devuelve cuántos fueron nuevos.

        English: Insert the municipalities found in ``electorado_seccional``
        and return how many were new.
        """
        added = 0
        for name in self._store.distinct_electorate_municipalities():
            canonical = normalize_name(name)
            if not canonical or canonical in self._ids:
                continue
            self._create(canonical)
            added += 1
        logger.info("municipalities_seeded added=%s total=%s", added, len(self))
        return added

