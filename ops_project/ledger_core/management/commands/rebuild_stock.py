from django.core.management.base import BaseCommand, CommandError

from ledger_core.exceptions import NotFoundError
from ledger_core.models import StockItem
from ledger_core.services.stock import rebuild_stock


class Command(BaseCommand):
    help = "Recompute materialized stock levels from the stock adjustment log."

    # Define command-line argument
    def add_arguments(self, parser):
        parser.add_argument(
            "--item",
            type=int,
            help="Only rebuild this stock item id (default: every item)",
        )

    def handle(self, *args, **options):
        if options["item"] is not None:
            item_ids = [options["item"]]
        else:
            item_ids = list(
                StockItem.objects.order_by("pk").values_list("pk", flat=True))

        drifted = 0
        for item_id in item_ids:
            try:
                result = rebuild_stock(item_id)
            except NotFoundError as exc:
                raise CommandError(str(exc))

            if result.drift:
                drifted += 1
                self.stdout.write(self.style.WARNING(
                    f"Item {item_id}: stored {result.stored}, "
                    f"log says {result.rebuilt} (corrected)"))

        self.stdout.write(self.style.SUCCESS(
            f"Rebuilt {len(item_ids)} item(s), {drifted} corrected."))
