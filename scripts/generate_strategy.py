"""
Strategy Generation Script - synthesizes winning strategies from the command line.

Usage:
    python scripts/generate_strategy.py nadia-17
    python scripts/generate_strategy.py nadia-17 kolkata-2 --summary
    python scripts/generate_strategy.py --district Alipurduar
    python scripts/generate_strategy.py --tasks 0
"""
import argparse
import sys
from pathlib import Path

# Add backend to path
script_dir = Path(__file__).parent
backend_dir = script_dir.parent / "backend"
sys.path.insert(0, str(backend_dir))

from strategy_engine.config import settings
from strategy_engine.engine.district import summarize_district
from strategy_engine.engine.ground_ops import daily_tasks, weekday_theme
from strategy_engine.errors import StrategyEngineError
from strategy_engine.factory import build_pipeline
from strategy_engine.services.narrative import NarrativeGenerator, template_summary


def main():
    parser = argparse.ArgumentParser(description="Generate constituency winning strategies")
    parser.add_argument("constituency_ids", nargs="*", help="Constituency ids, e.g. nadia-17")
    parser.add_argument("--district", help="Summarize every constituency in a district")
    parser.add_argument("--summary", action="store_true", help="Print the template summary instead of JSON")
    parser.add_argument("--narrative", action="store_true", help="Ask the configured LLM for a briefing")
    parser.add_argument("--tasks", type=int, metavar="WEEKDAY", help="Print ground-worker tasks (0 = Monday)")
    args = parser.parse_args()

    if args.tasks is not None:
        print(f"{weekday_theme(args.tasks)}:")
        for task in daily_tasks(args.tasks):
            print(f"  - {task}")
        return 0

    if not args.constituency_ids and not args.district:
        parser.error("give at least one constituency id or --district")

    pipeline = build_pipeline(settings)
    try:
        if args.district:
            entries = pipeline.resolver.registry.in_district(args.district)
            if not entries:
                print(f"District not found: {args.district}", file=sys.stderr)
                return 1
            strategies = pipeline.synthesize_many([e.constituency_id for e in entries])
            print(summarize_district(entries[0].district, strategies).model_dump_json(indent=2))
            return 0

        strategies = pipeline.synthesize_many(args.constituency_ids)
    except StrategyEngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    generator = NarrativeGenerator() if args.narrative else None
    for strategy in strategies:
        if generator is not None:
            print(generator.generate(strategy).text)
        elif args.summary:
            print(template_summary(strategy))
        else:
            print(strategy.model_dump_json(indent=2))
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
