"""
Django management command to seed the ledger sheet.

Writes the canonical header row and, optionally, sample unclaimed order
rows. Stands in for the bulk import that creates order rows in
production.
"""

import asyncio
import logging

from django.apps import apps
from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainException
from ledger.domain.schema import LedgerField
from ledger.infrastructure.a1_notation import row_range
from ledger.infrastructure.serial_locks import APPEND_LOCK_KEY

logger = logging.getLogger(__name__)

HEADER_ROW = ["Serial", "ClientOrder", "Token", "Activated", "Terminated"]


class Command(BaseCommand):
    """Command to seed the ledger sheet."""

    help = "Write the ledger header row and sample order rows to the configured sheet"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--orders",
            type=int,
            default=0,
            help="Number of sample unclaimed orders to append (default: 0)",
        )
        parser.add_argument(
            "--first-order",
            type=int,
            default=1001,
            help="Order number of the first sample row (default: 1001)",
        )
        parser.add_argument(
            "--serial-prefix",
            type=str,
            default="SN-",
            help="Prefix of sample serial numbers (default: SN-)",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Overwrite an existing header row",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        if options["orders"] < 0:
            raise CommandError("--orders must not be negative")

        services = apps.get_app_config("ledger").services
        try:
            written = asyncio.run(self.seed(services, options))
        except DomainException as e:
            raise CommandError(f"Could not seed ledger sheet: {e.message}") from e

        self.stdout.write(self.style.SUCCESS(f"Seeded ledger sheet ({written} row(s) written)"))

    async def seed(self, services, options) -> int:
        """Write the header and sample rows; returns the number of rows written."""
        snapshot = await services.locator.load()
        sheet_name = services.locator.sheet_name
        written = 0

        has_header = snapshot.schema.width > 0
        if has_header and not options["force"]:
            self.stdout.write(self.style.WARNING("Header row already present, leaving it as is"))
        else:
            await services.store.write_range(
                row_range(sheet_name, 1, 0, len(HEADER_ROW) - 1), [HEADER_ROW]
            )
            written += 1
            self.stdout.write(self.style.SUCCESS(f"Wrote header row: {', '.join(HEADER_ROW)}"))

        if options["orders"]:
            async with services.locks.hold(APPEND_LOCK_KEY):
                snapshot = await services.locator.load()
                schema = snapshot.schema
                width = schema.width
                next_row = snapshot.next_row_index
                for offset in range(options["orders"]):
                    order_number = options["first_order"] + offset
                    row = [""] * width
                    serial = f"{options['serial_prefix']}{order_number}"
                    row[schema.require(LedgerField.SERIAL)] = serial
                    row[schema.require(LedgerField.ORDER)] = f"#{order_number}"
                    if schema.has(LedgerField.ACTIVATED):
                        row[schema.activated] = "FALSE"
                    if schema.has(LedgerField.TERMINATED):
                        row[schema.terminated] = "FALSE"
                    await services.writer.append_row(row, next_row + offset)
                    written += 1
            logger.info("Seeded %d sample order(s)", options["orders"])

        return written
