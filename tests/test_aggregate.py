"""Pruebas del agregador por (municipio, partido).

Tests for the (municipality, party) aggregator.
"""

from guardianes.core.aggregate import AggregationState, aggregate_row, aggregate_rows, build_results, build_totals
from guardianes.core.models import AggregationKey, ElectionType
from guardianes.core.normalize import normalize_name

MUNICIPALITIES = {"ACAPULCO": 1, "ACAPULCO DE JUAREZ": 2, "COPALA": 3}


def resolver(name):
    return MUNICIPALITIES.get(normalize_name(name))


def test_two_rows_same_municipality_are_summed():
    state = aggregate_rows(
        [{"MUNICIPIO": "Copala", "PAN": "10"}, {"MUNICIPIO": "COPALA ", "PAN": "5"}],
        resolver,
        year=2018,
        election_type=ElectionType.MUNICIPAL,
    )
    assert state.votes_for(3, "PAN") == 15
    assert state.processed == 2


def test_accented_names_share_a_bucket():
    state = aggregate_rows(
        [{"MUNICIPIO": "Acapulco de Juárez", "PRI": "7"}, {"MUNICIPIO": "ACAPULCO DE JUAREZ", "PRI": "3"}],
        resolver,
        year=2024,
        election_type=ElectionType.MUNICIPAL,
    )
    assert list(state.buckets) == [AggregationKey(2, "PRI")]
    assert state.votes_for(2, "PRI") == 10


def test_acapulco_end_to_end_uses_last_seen_totals():
    """Español: Los totales por llave son los de la última fila vista.

    English: Per-key totals are the ones from the last row seen.
    """
    rows = [
        {"MUNICIPIO": "Acapulco", "PAN": "100", "PRI": "50", "TOTAL_VOTOS": "200", "LISTA_NOMINAL": "1000"},
        {"MUNICIPIO": "Acapulco", "PAN": "50", "PRI": "25", "TOTAL_VOTOS": "100", "LISTA_NOMINAL": "500"},
    ]
    state = aggregate_rows(rows, resolver, year=2021, election_type=ElectionType.MUNICIPAL)
    results = {result.party: result for result in build_results(state)}

    assert set(results) == {"PAN", "PRI"}
    assert results["PAN"].votes == 150
    assert results["PRI"].votes == 75
    assert results["PAN"].percentage == 150.0
    assert results["PRI"].percentage == 75.0
    assert results["PAN"].turnout_percentage == 20.0
    assert results["PAN"].election_year == 2021
    assert results["PAN"].election_type is ElectionType.MUNICIPAL
    assert results["PAN"].as_tuple() == (1, 2021, "Municipal", "PAN", 150, 150.0, 20.0)


def test_zero_votes_create_no_bucket():
    state = aggregate_rows(
        [{"MUNICIPIO": "Copala", "PAN": "0", "PRI": "", "MORENA": "4"}],
        resolver,
        year=2021,
        election_type=ElectionType.GOVERNOR,
    )
    assert list(state.buckets) == [AggregationKey(3, "MORENA")]


def test_unresolved_and_empty_names_are_skipped():
    state = aggregate_rows(
        [
            {"MUNICIPIO": "Atlantida", "PAN": "3"},
            {"MUNICIPIO": "atlántida", "PAN": "1"},
            {"MUNICIPIO": "", "PAN": "9"},
        ],
        resolver,
        year=2021,
        election_type=ElectionType.MUNICIPAL,
    )
    assert state.processed == 0
    assert state.skipped == 3
    assert state.unresolved == {"ATLANTIDA": 2}
    assert build_results(state) == []


def test_invalid_counts_become_warnings():
    state = AggregationState(year=2018, election_type=ElectionType.STATE_LEGISLATURE)
    aggregate_row(state, {"MUNICIPIO": "Copala", "PAN": "x", "PRI": "2"}, resolver, line_number=5)
    assert state.votes_for(3, "PRI") == 2
    assert state.warnings == ["line 5: invalid count 'x' for PAN"]


def test_zero_denominators_give_zero_percentages():
    state = aggregate_rows(
        [{"MUNICIPIO": "Copala", "PAN": "8"}],
        resolver,
        year=2021,
        election_type=ElectionType.MUNICIPAL,
    )
    (result,) = build_results(state)
    assert result.percentage == 0.0
    assert result.turnout_percentage == 0.0


def test_custom_party_list():
    state = aggregate_rows(
        [{"MUNICIPIO": "Copala", "PAN": "8", "PES": "2"}],
        resolver,
        year=2021,
        election_type=ElectionType.MUNICIPAL,
        parties=("PES",),
    )
    assert list(state.buckets) == [AggregationKey(3, "PES")]


def test_municipal_totals_are_summed_across_rows():
    rows = [
        {"MUNICIPIO": "Copala", "PAN": "6", "VOTOS_VALIDOS": "6", "VOTOS_NULOS": "1", "TOTAL_VOTOS": "7", "LISTA_NOMINAL": "20"},
        {"MUNICIPIO": "copala", "PRI": "3", "VOTOS_VALIDOS": "3", "VOTOS_NULOS": "0", "TOTAL_VOTOS": "3", "LISTA_NOMINAL": "20"},
        {"MUNICIPIO": "Atlántida", "PAN": "9", "TOTAL_VOTOS": "9", "LISTA_NOMINAL": "10"},
    ]
    state = aggregate_rows(rows, resolver, year=2018, election_type=ElectionType.MUNICIPAL)

    (totals,) = build_totals(state)

    assert totals.municipality_id == 3
    assert totals.rows == 2
    assert (totals.valid_votes, totals.null_votes, totals.total_votes) == (9, 1, 10)
    assert totals.nominal_list_size == 40
    assert totals.turnout_percentage == 25.0
    assert totals.election_type is ElectionType.MUNICIPAL
