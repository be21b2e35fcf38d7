"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/guardianes/__init__.py`.
Cargador de datos electorales de Guardianes: normaliza, agrega y persiste
resultados históricos y electorado seccional en PostgreSQL.

Componentes detectados:
  - __version__

======================== ENGLISH ========================
File: `src/guardianes/__init__.py`.
Guardianes electoral data loader: normalizes, aggregates and persists
historical results and sectional electorate into PostgreSQL.

Detected components:
  - __version__
"""

__version__ = "0.1.0"
