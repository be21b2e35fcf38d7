"""Agregación de votos por (municipio, partido) durante un archivo.

English:
    Per-file aggregation of votes keyed by (municipality, party). The state is
    an explicit object passed into and returned from the aggregation
    functions; nothing is kept at module level.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from guardianes.core.models import (
    AggregationBucket,
    AggregationKey,
    ElectionType,
    HistoricalResult,
    MunicipalTotal,
    TotalsBucket,
)
from guardianes.core.normalize import normalize_name
from guardianes.core.percentages import turnout, vote_share
from guardianes.errors import UnresolvedMunicipality
from guardianes.schemas import DEFAULT_PARTIES, ElectoralResultRow, parse_result_row

logger = logging.getLogger(__name__)

MunicipalityResolver = Callable[[str], Optional[int]]


@dataclass
class AggregationState:
    """Estado local de agregación de un archivo.

    Attributes:
        year (int): Año de la elección.
        election_type (ElectionType): Tipo de elección.
        parties (Sequence[str]): Partidos reconocidos.
        buckets (Dict[AggregationKey, AggregationBucket]): Acumuladores.
        totals (Dict[int, TotalsBucket]): Sumas generales por municipio.
        processed (int): Filas agregadas.
        skipped (int): Filas omitidas.
        unresolved (Counter): Nombres canónicos sin municipio.
        inconsistent_totals (int): Filas donde válidos + nulos != total.
        warnings (List[str]): Avisos por fila.

    English:
        Local aggregation state for a single file pass.
    """

    year: int
    election_type: ElectionType
    parties: Sequence[str] = DEFAULT_PARTIES
    buckets: Dict[AggregationKey, AggregationBucket] = field(default_factory=dict)
    totals: Dict[int, TotalsBucket] = field(default_factory=dict)
    processed: int = 0
    skipped: int = 0
    unresolved: Counter = field(default_factory=Counter)
    inconsistent_totals: int = 0
    warnings: List[str] = field(default_factory=list)

    def votes_for(self, municipality_id: int, party: str) -> int:
        bucket = self.buckets.get(AggregationKey(municipality_id, party))
        return bucket.votes if bucket else 0


def aggregate_row(
    state: AggregationState,
    row: Union[ElectoralResultRow, Mapping[str, str]],
    resolver: MunicipalityResolver,
    *,
    line_number: int = 0,
) -> AggregationState:
    """Acumula una fila en el estado y lo devuelve.

    Los votos en cero no se registran. ``TOTAL_VOTOS`` y ``LISTA_NOMINAL`` se
    sobrescriben con el último valor visto por cada llave. Filas sin municipio
    resoluble se omiten con aviso.

    English:
        Accumulate one row into ``state`` and return it. ``row`` may be a typed
        ``ElectoralResultRow`` or a raw header→value mapping. Zero counts are
        not recorded; per-bucket totals are overwritten by every contributing
        row, while ``state.totals`` sums them per municipality. ``resolver`` returns ``None`` or raises ``UnresolvedMunicipality``
        for unknown names; such rows are skipped.
    """
    if not isinstance(row, ElectoralResultRow):
        row = parse_result_row(
            row,
            line_number=line_number,
            year=state.year,
            election_type=state.election_type,
            parties=state.parties,
        )

    name = row.territory_name
    if not name:
        state.skipped += 1
        logger.warning("row_without_municipality line=%s", row.line_number)
        return state

    try:
        municipality_id = resolver(name)
    except UnresolvedMunicipality:
        municipality_id = None
    if municipality_id is None:
        canonical = normalize_name(name)
        state.skipped += 1
        state.unresolved[canonical] += 1
        logger.warning(
            "municipality_unresolved line=%s name=%s canonical=%s",
            row.line_number,
            name,
            canonical,
        )
        return state

    state.processed += 1
    state.warnings.extend(f"line {row.line_number}: {message}" for message in row.warnings)
    if not row.totals_consistent:
        state.inconsistent_totals += 1

    totals = state.totals.get(municipality_id)
    if totals is None:
        totals = state.totals[municipality_id] = TotalsBucket(municipality_id=municipality_id)
    totals.rows += 1
    totals.valid_votes += row.valid_votes
    totals.null_votes += row.null_votes
    totals.total_votes += row.total_votes
    totals.nominal_list_size += row.nominal_list_size

    for party in state.parties:
        votes = row.votes_by_party.get(party, 0)
        if votes <= 0:
            continue
        key = AggregationKey(municipality_id, party)
        bucket = state.buckets.get(key)
        if bucket is None:
            bucket = state.buckets[key] = AggregationBucket(key=key)
        bucket.votes += votes
        bucket.total_votes = row.total_votes
        bucket.nominal_list_size = row.nominal_list_size
    return state


def aggregate_rows(
    rows: Iterable[Union[ElectoralResultRow, Mapping[str, str]]],
    resolver: MunicipalityResolver,
    *,
    year: int,
    election_type: ElectionType,
    parties: Sequence[str] = DEFAULT_PARTIES,
) -> AggregationState:
    """Agrega un flujo completo de filas. / Aggregate a whole stream of rows."""
    state = AggregationState(year=year, election_type=election_type, parties=tuple(parties))
    for index, row in enumerate(rows, start=2):
        state = aggregate_row(state, row, resolver, line_number=index)
    return state


def build_results(state: AggregationState) -> List[HistoricalResult]:
    """Convierte los acumuladores en filas persistibles con porcentajes.

    English:
        Turn buckets into persistable rows. ``percentage`` is the share of the
        bucket's total votes and ``turnout_percentage`` is total votes over the
        nominal list, both with the 0.00 sentinel for empty denominators.
    """
    results: List[HistoricalResult] = []
    for key in sorted(state.buckets):
        bucket = state.buckets[key]
        results.append(
            HistoricalResult(
                municipality_id=key.municipality_id,
                election_year=state.year,
                election_type=state.election_type,
                party=key.party,
                votes=bucket.votes,
                percentage=vote_share(bucket.votes, bucket.total_votes),
                turnout_percentage=turnout(bucket.total_votes, bucket.nominal_list_size),
            )
        )
    return results


def build_totals(state: AggregationState) -> List[MunicipalTotal]:
    """Una fila de totales por municipio resuelto.

    English:
        One totals row per resolved municipality: summed valid, null and total
        votes and nominal list, plus turnout over those sums.
    """
    return [
        MunicipalTotal(
            municipality_id=municipality_id,
            election_year=state.year,
            election_type=state.election_type,
            rows=bucket.rows,
            valid_votes=bucket.valid_votes,
            null_votes=bucket.null_votes,
            total_votes=bucket.total_votes,
            nominal_list_size=bucket.nominal_list_size,
            turnout_percentage=turnout(bucket.total_votes, bucket.nominal_list_size),
        )
        for municipality_id, bucket in sorted(state.totals.items())
    ]
