"""
Export shopping lists and import meal plans from the command line.
"""
import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

from mealcart.domain.Plan import MealPlan
from mealcart.domain.ShoppingList import ShoppingList
from mealcart.infra.CheckState_Repository import JsonCheckStateRepository
from mealcart.infra.normalizer import make_normalizer
from mealcart.infra.pdf_utils import generate_pdf_for_shopping_list
from mealcart.infra.Plan_Repository import PlanRepository
from mealcart.logic.shopping.exporters import to_printable, to_text
from mealcart.logic.shopping.list_builder import ShoppingListBuilder, consolidate

logger = logging.getLogger(__name__)

EXTENSIONS = {'text': 'txt', 'json': 'json', 'pdf': 'pdf'}


class ShoppingListExporter:
    """Render a stored plan's shopping list to text, JSON or PDF."""

    def __init__(self, plans: PlanRepository, checks: JsonCheckStateRepository):
        self.plans = plans
        self.checks = checks

    def build(self, plan: MealPlan, normalize: bool = True) -> ShoppingList:
        if not normalize:
            return consolidate(plan)
        shopping_list = asyncio.run(ShoppingListBuilder(make_normalizer()).build(plan))
        # None only when the plan changed mid-run
        return shopping_list if shopping_list is not None else consolidate(plan)

    def export(self, plan_id: str, fmt: str = 'text', output_path: Path = None,
               normalize: bool = True) -> Optional[Path]:
        plan = self.plans.get_plan(plan_id)
        if plan is None:
            logger.error(f"Meal plan {plan_id} not found")
            return None
        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = Path(f"shopping-list_{plan_id}_{timestamp}.{EXTENSIONS[fmt]}")

        shopping_list = self.build(plan, normalize)
        state = self.checks.entries(plan_id)
        if fmt == 'pdf':
            output_path.write_bytes(generate_pdf_for_shopping_list(shopping_list, state))
        elif fmt == 'json':
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(to_printable(shopping_list, state), f, indent=2, ensure_ascii=False)
        else:
            output_path.write_text(to_text(shopping_list, state), encoding='utf-8')

        logger.info(f"Exported {shopping_list.item_count} items of plan {plan_id} to {output_path}")
        return output_path


class PlanImporter:
    """Import meal plan documents (one object or a list) into the plans store."""

    def __init__(self, plans: PlanRepository):
        self.plans = plans

    def import_plans(self, input_path: Path) -> int:
        with open(input_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        documents = data if isinstance(data, list) else [data]
        imported = 0
        for doc in documents:
            plan = MealPlan.from_dict(doc)
            if not plan.id:
                logger.warning("Skipping meal plan without an id")
                continue
            self.plans.save_plan(plan)
            imported += 1
        logger.info(f"Imported {imported} meal plans from {input_path}")
        return imported


def main(argv=None) -> int:
    import argparse
    from mealcart.infra.paths import CHECK_STATE_FILE, PLANS_FILE

    parser = argparse.ArgumentParser(description='Export shopping lists / import meal plans')
    parser.add_argument('action', nargs='?', choices=['export', 'import'], default='export',
                        help='Action to perform')
    parser.add_argument('--plan', help='Meal plan id to export')
    parser.add_argument('--format', choices=['text', 'json', 'pdf'], default='text', help='Export format')
    parser.add_argument('--file', help='Input/output file path')
    parser.add_argument('--no-normalize', action='store_true', help='Use raw ingredient names')

    args = parser.parse_args(argv)
    plans = PlanRepository(PLANS_FILE)

    if args.action == 'import':
        if not args.file:
            print("Error: --file is required for import")
            return 1
        count = PlanImporter(plans).import_plans(Path(args.file))
        print(f"✓ Imported {count} meal plans from: {args.file}")
        return 0

    if not args.plan:
        print("Error: --plan is required for export")
        return 1
    exporter = ShoppingListExporter(plans, JsonCheckStateRepository(CHECK_STATE_FILE))
    result = exporter.export(args.plan, args.format, Path(args.file) if args.file else None,
                             normalize=not args.no_normalize)
    if result is None:
        print(f"✗ Export failed")
        return 1
    print(f"✓ Exported to: {result}")
    return 0


# CLI interface
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
