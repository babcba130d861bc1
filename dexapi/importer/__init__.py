"""Import pipeline: field mapping, reconciliation and batch driving."""
from .batch import BatchDriver, RangeReport
from .data_importer import DataImporter
from .progress import ImportProgress, Interrupt
from .reconciler import ImportStrategy, ReconcileOutcome, RecordOutcome, reconcile
from .strategies import (
    GENERATION_SOURCE,
    POKEMON_SOURCE,
    TYPE_SOURCE,
    GenerationImportStrategy,
    PokemonImportStrategy,
    TypeImportStrategy,
)

__all__ = [
    'BatchDriver',
    'RangeReport',
    'DataImporter',
    'ImportProgress',
    'Interrupt',
    'ImportStrategy',
    'ReconcileOutcome',
    'RecordOutcome',
    'reconcile',
    'GENERATION_SOURCE',
    'TYPE_SOURCE',
    'POKEMON_SOURCE',
    'GenerationImportStrategy',
    'TypeImportStrategy',
    'PokemonImportStrategy',
]
