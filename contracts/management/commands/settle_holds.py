from django.core.management.base import BaseCommand, CommandError

from core.exceptions import ContractError
from core.utils.escrow import get_escrow_gateway

from contracts.settlement import SettlementEngine
from contracts.store import get_ledger_store


class Command(BaseCommand):
    help = "Retry capturing or cancelling the holds still held on a settled challenge."

    def add_arguments(self, parser):
        parser.add_argument('challenge_id')

    def handle(self, *args, **options):

        engine = SettlementEngine(get_ledger_store(), get_escrow_gateway())

        try:
            batch = engine.retry_holds(options['challenge_id'])
        except ContractError as e:
            raise CommandError(str(e)) from e

        for result in batch.results:
            if result.ok:
                self.stdout.write(self.style.SUCCESS(f"{result.escrow_intent_id}: settled"))
            else:
                self.stdout.write(self.style.ERROR(f"{result.escrow_intent_id}: {result.error} ({result.detail})"))

        self.stdout.write(f"Outcome {batch.outcome}: {batch.processed - len(batch.failures)} of {batch.processed} holds settled")

        if batch.failures:
            raise CommandError(f"{len(batch.failures)} holds are still held")
