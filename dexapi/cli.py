import argparse
import asyncio
import logging
import sys

from dexapi.clients import PokeAPIClient
from dexapi.config import ImportSettings, get_settings, setup_logging
from dexapi.dependencies import build_import_service, create_entity_stores
from dexapi.importer import POKEMON_SOURCE
from dexapi.importer.strategies import KNOWN_GENERATIONS, KNOWN_TYPES
from dexapi.models import ImportResult

logger = logging.getLogger(__name__)

MAX_POKEMON = 1025


def print_result(result: ImportResult) -> None:
    print("\n=== Import Results ===")
    print(f"Source: {result.source}")
    print(f"Status: {'SUCCESS' if result.success else 'FAILED'}")
    print(f"Total Records: {result.total_records}")
    print(f"Successful: {result.successful_imports}")
    if result.augmented_imports:
        print(f"  (of which augmented: {result.augmented_imports})")
    print(f"Failed: {result.failed_imports}")
    print(f"Duration: {result.duration_ms} ms")
    if result.errors:
        print("\nErrors:")
        for error in result.errors:
            print(f"- {error}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="dexapi-import", description="Import Pokemon reference data from PokeAPI.")
    sub = ap.add_subparsers(dest="command", required=True)

    full = sub.add_parser("full", help="Generations, then types, then pokemon")
    full.add_argument("--pokemon", type=int, required=True, help=f"Number of pokemon to import (1-{MAX_POKEMON})")
    full.add_argument("--batch-size", type=int, default=None, help="Pokemon per sub-batch (default from settings)")

    sub.add_parser("generations", help=f"Import all {KNOWN_GENERATIONS} generations")
    sub.add_parser("types", help=f"Import all {KNOWN_TYPES} types")

    pokemon = sub.add_parser("pokemon", help="Import a range of pokemon")
    pokemon.add_argument("--limit", type=int, required=True, help=f"Number of pokemon to import (1-{MAX_POKEMON})")
    pokemon.add_argument("--offset", type=int, default=0, help="Start after this national dex number (default 0)")
    pokemon.add_argument("--batch-size", type=int, default=None, help="Pokemon per sub-batch; omit for a single range. Cannot be combined with --offset")

    sub.add_parser("health", help="Check which import sources are reachable")
    return ap


async def run(args: argparse.Namespace, settings: ImportSettings) -> int:
    client = PokeAPIClient(settings)
    try:
        service = build_import_service(client, create_entity_stores(settings), settings)

        if args.command == "health":
            healthy = await service.healthy_importer_names()
            print("Healthy importers:")
            for name in healthy:
                print(f"- {name} ✓")
            return 0 if healthy else 2

        if args.command == "full":
            result = await service.run_full_import(args.pokemon, args.batch_size)
        elif args.command == "generations":
            result = await service.import_generations(KNOWN_GENERATIONS, 0)
        elif args.command == "types":
            result = await service.import_types(KNOWN_TYPES, 0)
        elif args.batch_size:
            result = await service.import_pokemon_batch(POKEMON_SOURCE, args.limit, args.batch_size)
        else:
            result = await service.import_pokemon(POKEMON_SOURCE, args.limit, max(args.offset, 0))

        print_result(result)
        return 0 if result.success else 2
    finally:
        await client.close()


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    limit = args.pokemon if args.command == "full" else getattr(args, "limit", None)
    if limit is not None and not 1 <= limit <= MAX_POKEMON:
        print(f"Invalid limit. Must be between 1 and {MAX_POKEMON}.")
        sys.exit(2)
    if args.command == "pokemon" and args.batch_size and args.offset:
        print("--offset cannot be combined with --batch-size; batched imports always start at #1.")
        sys.exit(2)

    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("=== DexAPI Data Import Tool ===")
    sys.exit(asyncio.run(run(args, settings)))


if __name__ == "__main__":
    main()
